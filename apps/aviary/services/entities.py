"""
Entity model for a user's aviary.

Every record is one of nine frozen dataclasses sharing a ``category`` tag and
a string ``id``. Records refer to each other only by id (weak references):
nothing owns anything else, and a referenced id may no longer exist, in which
case lookups return ``None`` and displays fall back to ``"N/A"``.

Collection-valued fields are tuples, so a snapshot handed to a reader cannot
be changed in place. Use :func:`apply_updates` to derive a modified copy.

Example::

    bird = Bird(species='Galah', sex=Sex.FEMALE, ring_number='ZA-114')
    bird.id                    # 'b3f0c...' (generated)
    bird_identifier(bird)      # 'Galah (ZA-114)'
    sold = apply_updates(bird, {'status': 'Sold'})
"""
import calendar
import datetime as dt
import uuid
from dataclasses import dataclass, fields, is_dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import (
    Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Tuple, Union,
    get_args, get_origin, get_type_hints,
)

from django.utils.dateparse import parse_date, parse_datetime

from ..choices import (
    BirdStatus, Category, EggStatus, Inheritance, RecurrencePattern, Sex,
    TransactionType,
)
from .exceptions import EntityValidationError, UnknownCategoryError

IMMUTABLE_FIELDS = ('id', 'category')
NOT_AVAILABLE = 'N/A'

# Money columns hold 12 digits, 2 of them after the decimal point.
CENT = Decimal('0.01')
MONEY_LIMIT = Decimal(10) ** 10


def generate_id(prefix: str) -> str:
    """Collision-resistant id; there is no central allocator."""
    return f'{prefix}{uuid.uuid4().hex}'


class _GeneratedId:
    id_prefix: ClassVar[str] = ''

    def __post_init__(self):
        if not self.id:
            object.__setattr__(self, 'id', generate_id(self.id_prefix))


# =============================================================================
# Nested records
# =============================================================================

@dataclass(frozen=True)
class SaleDetails:
    date: Optional[dt.date] = None
    price: Optional[Decimal] = None
    buyer: str = ''


@dataclass(frozen=True)
class MedicalRecord:
    date: Optional[dt.date] = None
    type: str = ''
    details: str = ''
    cost: Optional[Decimal] = None


@dataclass(frozen=True)
class Egg(_GeneratedId):
    id_prefix: ClassVar[str] = 'e'

    id: str = ''
    laid_date: Optional[dt.date] = None
    expected_hatch_date: Optional[dt.date] = None
    status: str = EggStatus.LAID
    hatch_date: Optional[dt.date] = None
    chick_id: Optional[str] = None


@dataclass(frozen=True)
class SubTask(_GeneratedId):
    id_prefix: ClassVar[str] = 'st'

    id: str = ''
    text: str = ''
    completed: bool = False
    associated_bird_ids: Tuple[str, ...] = ()


# =============================================================================
# Entities
# =============================================================================

@dataclass(frozen=True)
class Entity(_GeneratedId):
    """Base of every collection item."""

    category: ClassVar[str] = ''

    id: str = ''

    def clean(self):
        """Raise EntityValidationError if required fields are missing or invalid."""


@dataclass(frozen=True)
class Bird(Entity):
    category: ClassVar[str] = Category.BIRD
    id_prefix: ClassVar[str] = 'b'

    species: str = ''
    subspecies: Optional[str] = None
    sex: str = Sex.UNSEXED
    ring_number: Optional[str] = None
    unbanded: bool = False
    birth_date: Optional[dt.date] = None
    image_url: Optional[str] = None
    visual_mutations: Tuple[str, ...] = ()
    split_mutations: Tuple[str, ...] = ()
    father_id: Optional[str] = None
    mother_id: Optional[str] = None
    mate_id: Optional[str] = None
    offspring_ids: Tuple[str, ...] = ()
    paid_price: Optional[Decimal] = None
    estimated_value: Optional[Decimal] = None
    status: str = BirdStatus.AVAILABLE
    permit_id: Optional[str] = None
    sale_details: Optional[SaleDetails] = None
    medical_records: Tuple[MedicalRecord, ...] = ()

    def clean(self):
        _require(self, 'species')
        _check_choice(self, 'sex', Sex)
        _check_choice(self, 'status', BirdStatus)
        _check_money(self, 'paid_price', 'estimated_value')
        if self.mate_id and self.mate_id == self.id:
            raise EntityValidationError('A bird cannot be its own mate')


@dataclass(frozen=True)
class Cage(Entity):
    category: ClassVar[str] = Category.CAGE
    id_prefix: ClassVar[str] = 'c'

    name: str = ''
    bird_ids: Tuple[str, ...] = ()
    cost: Optional[Decimal] = None

    def clean(self):
        _require(self, 'name')
        _check_money(self, 'cost')


@dataclass(frozen=True)
class Pair(Entity):
    category: ClassVar[str] = Category.PAIR
    id_prefix: ClassVar[str] = 'p'

    male_id: str = ''
    female_id: str = ''
    image_url: Optional[str] = None

    def clean(self):
        _require(self, 'male_id')
        _require(self, 'female_id')
        if self.male_id == self.female_id:
            raise EntityValidationError('A pair needs two different birds')


@dataclass(frozen=True)
class BreedingRecord(Entity):
    category: ClassVar[str] = Category.BREEDING_RECORD
    id_prefix: ClassVar[str] = 'br'

    pair_id: str = ''
    start_date: Optional[dt.date] = None
    notes: Optional[str] = None
    eggs: Tuple[Egg, ...] = ()

    def clean(self):
        _require(self, 'pair_id')
        for egg in self.eggs:
            _check_choice(egg, 'status', EggStatus)


@dataclass(frozen=True)
class NoteReminder(Entity):
    category: ClassVar[str] = Category.NOTE_REMINDER
    id_prefix: ClassVar[str] = 'nr'

    title: str = ''
    content: Optional[str] = None
    is_reminder: bool = False
    reminder_date: Optional[dt.date] = None
    is_recurring: bool = False
    recurrence_pattern: str = RecurrencePattern.NONE
    associated_bird_ids: Tuple[str, ...] = ()
    sub_tasks: Tuple[SubTask, ...] = ()
    completed: bool = False

    def clean(self):
        _require(self, 'title')
        _check_choice(self, 'recurrence_pattern', RecurrencePattern)
        if self.is_recurring and self.recurrence_pattern == RecurrencePattern.NONE:
            raise EntityValidationError('A recurring reminder needs a recurrence pattern')


@dataclass(frozen=True)
class Transaction(Entity):
    category: ClassVar[str] = Category.TRANSACTION
    id_prefix: ClassVar[str] = 't'

    type: str = TransactionType.EXPENSE
    date: Optional[dt.date] = None
    description: str = ''
    amount: Optional[Decimal] = None
    related_bird_id: Optional[str] = None

    def clean(self):
        _check_choice(self, 'type', TransactionType)
        _require(self, 'description')
        _require(self, 'date')
        _require(self, 'amount')
        _check_money(self, 'amount')
        if self.amount < 0:
            raise EntityValidationError('Transaction amount cannot be negative')


@dataclass(frozen=True)
class Permit(Entity):
    category: ClassVar[str] = Category.PERMIT
    id_prefix: ClassVar[str] = 'pm'

    permit_number: str = ''
    issuing_authority: str = ''
    issue_date: Optional[dt.date] = None
    expiry_date: Optional[dt.date] = None

    def clean(self):
        _require(self, 'permit_number')
        _require(self, 'issuing_authority')
        if self.issue_date and self.expiry_date and self.expiry_date < self.issue_date:
            raise EntityValidationError('Permit expiry date must be after its issue date')


@dataclass(frozen=True)
class CustomSpecies(Entity):
    category: ClassVar[str] = Category.CUSTOM_SPECIES
    id_prefix: ClassVar[str] = 'cs'

    name: str = ''
    incubation_period: Optional[int] = None
    subspecies: Tuple[str, ...] = ()

    def clean(self):
        _require(self, 'name')
        _require(self, 'incubation_period')
        if self.incubation_period <= 0:
            raise EntityValidationError('Incubation period must be a positive number of days')


@dataclass(frozen=True)
class CustomMutation(Entity):
    category: ClassVar[str] = Category.CUSTOM_MUTATION
    id_prefix: ClassVar[str] = 'cm'

    name: str = ''
    inheritance: str = ''

    def clean(self):
        _require(self, 'name')
        _check_choice(self, 'inheritance', Inheritance)


ENTITY_TYPES = {
    cls.category: cls
    for cls in (
        Bird, Cage, Pair, BreedingRecord, NoteReminder, Transaction,
        Permit, CustomSpecies, CustomMutation,
    )
}


def _require(record, name):
    value = getattr(record, name)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise EntityValidationError(f"'{name}' is required for {type(record).__name__}")


def _check_choice(record, name, choices):
    value = getattr(record, name)
    if value not in choices.values:
        raise EntityValidationError(
            f"'{value}' is not a valid {name} for {type(record).__name__}; "
            f"expected one of: {', '.join(choices.values)}"
        )


def _check_money(record, *names):
    for name in names:
        value = getattr(record, name)
        if value is not None:
            to_money(value, name)


# =============================================================================
# Conversion
# =============================================================================

def entity_type(category: str):
    try:
        return ENTITY_TYPES[category]
    except KeyError:
        raise UnknownCategoryError(f"Unknown category '{category}'")


def resolve(items: Iterable[Entity], item_id: Optional[str]) -> Optional[Entity]:
    """Entity with the given id, or None for a missing or dangling reference."""
    if not item_id:
        return None
    return next((item for item in items if item.id == item_id), None)


def field_names(record) -> List[str]:
    """Dataclass field names of a record or record type, in declaration order."""
    return [f.name for f in fields(record)]


def _parse_date(value, name):
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_date(value) or parse_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed.date() if isinstance(parsed, dt.datetime) else parsed
    raise EntityValidationError(f"'{name}' must be a date (YYYY-MM-DD), got {value!r}")


def to_money(value, name='amount') -> Decimal:
    """
    Parse a money value and round it to cents.

    Raises:
        EntityValidationError: If the value is not a finite number, or does
            not fit a money column
    """
    if isinstance(value, (bool, Mapping, list, tuple)):
        raise EntityValidationError(f"'{name}' must be a number, got {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise EntityValidationError(f"'{name}' must be a number, got {value!r}")
    if not amount.is_finite():
        raise EntityValidationError(f"'{name}' must be a finite number, got {value!r}")
    if amount.copy_abs() < MONEY_LIMIT:
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    # Rounding can carry a value up to the limit.
    if amount.copy_abs() >= MONEY_LIMIT:
        raise EntityValidationError(f"'{name}' must be less than {MONEY_LIMIT:,}")
    return amount


def _to_whole_number(value, name):
    if isinstance(value, bool):
        raise EntityValidationError(f"'{name}' must be a whole number, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise EntityValidationError(f"'{name}' must be a whole number, got {value!r}")
        return int(value)
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise EntityValidationError(f"'{name}' must be a whole number, got {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise EntityValidationError(f"'{name}' must be a whole number, got {value!r}")


def _coerce(hint, value, name):
    if value is None:
        return None

    origin = get_origin(hint)
    if origin is Union:
        inner = next(arg for arg in get_args(hint) if arg is not type(None))
        return _coerce(inner, value, name)
    if origin is tuple:
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
            raise EntityValidationError(f"'{name}' must be a list")
        item_hint = get_args(hint)[0]
        return tuple(_coerce(item_hint, item, name) for item in value)

    if hint is dt.date:
        return _parse_date(value, name)
    if hint is Decimal:
        return to_money(value, name)
    if hint is int:
        return _to_whole_number(value, name)
    if hint is bool:
        if isinstance(value, str):
            return value.strip().lower() in ('true', '1', 'yes')
        return bool(value)
    if hint is str:
        if isinstance(value, (Mapping, list, tuple)):
            raise EntityValidationError(f"'{name}' must be text")
        return str(value)
    if is_dataclass(hint):
        return value if isinstance(value, hint) else _build(hint, value)
    return value


def _coerce_fields(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
    hints = get_type_hints(cls)
    names = set(field_names(cls))
    unknown = sorted(set(data) - names - {'category'})
    if unknown:
        raise EntityValidationError(
            f"Unknown field(s) for {cls.__name__}: {', '.join(unknown)}"
        )
    return {
        name: _coerce(hints[name], value, name)
        for name, value in data.items()
        if name in names
    }


def _build(cls, data):
    if not isinstance(data, Mapping):
        raise EntityValidationError(f'{cls.__name__} data must be an object')
    return cls(**_coerce_fields(cls, data))


def create_entity(category: str, data: Mapping[str, Any]) -> Entity:
    """
    Build and validate an entity of the given category from raw field values.

    Raises:
        UnknownCategoryError: If the category is not an entity type
        EntityValidationError: If a field is unknown, malformed or missing
    """
    cls = entity_type(category)
    if data.get('category', category) != category:
        raise EntityValidationError('Category in data does not match requested category')
    entity = _build(cls, data)
    entity.clean()
    return entity


def entity_from_dict(data: Mapping[str, Any]) -> Entity:
    """Inverse of :func:`entity_to_dict`; the ``category`` key picks the type."""
    if not isinstance(data, Mapping) or 'category' not in data:
        raise EntityValidationError("Item data must be an object with a 'category'")
    return create_entity(data['category'], data)


def json_ready(value):
    """Convert a record value to JSON-compatible primitives."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: json_ready(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (tuple, list)):
        return [json_ready(item) for item in value]
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def entity_to_dict(entity: Entity) -> Dict[str, Any]:
    return {'category': str(entity.category), **json_ready(entity)}


def apply_updates(entity: Entity, updates: Mapping[str, Any]) -> Entity:
    """
    Shallow-merge field updates into a copy of ``entity``.

    ``id`` and ``category`` may be repeated with their current values but
    never changed. A value of ``None`` clears an optional field.

    Raises:
        EntityValidationError: If a field is unknown, immutable or invalid
    """
    for name in IMMUTABLE_FIELDS:
        if name in updates and updates[name] != getattr(entity, name):
            raise EntityValidationError(f"'{name}' cannot be changed")
    changes = _coerce_fields(type(entity), {
        name: value for name, value in updates.items() if name not in IMMUTABLE_FIELDS
    })
    updated = replace(entity, **changes)
    updated.clean()
    return updated


def changed_fields(before: Entity, after: Entity) -> List[str]:
    return [
        name for name in field_names(before)
        if getattr(before, name) != getattr(after, name)
    ]


# =============================================================================
# Display and derived values
# =============================================================================

def bird_identifier(bird: Bird, species_names: Optional[Mapping[str, str]] = None) -> str:
    """Human-readable identification: ``"<species name> (<ring>|Unbanded)"``."""
    tag = f'({bird.ring_number})' if bird.ring_number else '(Unbanded)'
    name = (species_names or {}).get(bird.species) or bird.species
    return f'{name} {tag}'


def bird_identifier_or_na(bird: Optional[Bird], species_names=None) -> str:
    return bird_identifier(bird, species_names) if bird is not None else NOT_AVAILABLE


def birth_year_only(bird: Bird) -> bool:
    """A recorded birth date of Jan 1 means only the year is known."""
    return bird.birth_date is not None and (bird.birth_date.month, bird.birth_date.day) == (1, 1)


def expected_hatch_date(laid_date: Optional[dt.date], incubation_period: Optional[int]) -> Optional[dt.date]:
    if laid_date is None or not incubation_period:
        return None
    return laid_date + dt.timedelta(days=incubation_period)


def incubation_period_for_pair(items: Iterable[Entity], pair_id: str) -> Optional[int]:
    """
    Incubation period of the species of a pair, from the user's custom species.

    The species is taken from whichever pair member is found first; the
    custom species must match the bird's species name exactly.
    """
    items = tuple(items)
    by_id = {item.id: item for item in items}
    pair = by_id.get(pair_id)
    if not isinstance(pair, Pair):
        return None
    bird = by_id.get(pair.male_id) or by_id.get(pair.female_id)
    if not isinstance(bird, Bird):
        return None
    for item in items:
        if isinstance(item, CustomSpecies) and item.name == bird.species:
            return item.incubation_period
    return None


def next_reminder_date(note: NoteReminder) -> Optional[dt.date]:
    """Next occurrence of a recurring reminder, or None if it does not recur."""
    if not note.is_recurring or note.reminder_date is None:
        return None
    current = note.reminder_date
    if note.recurrence_pattern == RecurrencePattern.DAILY:
        return current + dt.timedelta(days=1)
    if note.recurrence_pattern == RecurrencePattern.WEEKLY:
        return current + dt.timedelta(weeks=1)
    if note.recurrence_pattern == RecurrencePattern.MONTHLY:
        year, month = (current.year + 1, 1) if current.month == 12 else (current.year, current.month + 1)
        day = min(current.day, calendar.monthrange(year, month)[1])
        return dt.date(year, month, day)
    return None
