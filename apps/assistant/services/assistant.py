"""
Chat-style data entry.

The model only proposes actions. Nothing changes until the user confirms
them. Confirmed actions are turned into entities and field changes
(:func:`plan_replay`) and then replayed through the item store like any
other mutation (:func:`confirm_actions`).
"""
import json
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from django.utils import timezone

from apps.accounts.currency import DEFAULT_CURRENCY, format_currency
from apps.aviary.choices import BirdStatus, Category, TransactionType
from apps.aviary.services import (
    Cage, EntityValidationError, ItemStore, bird_identifier, create_entity, entity_to_dict, resolve,
)
from apps.aviary.services.entities import apply_updates

from .exceptions import InferenceError, InferenceOverloadedError
from .inference import InferenceClient, get_inference_client
from .prompts import ASSISTANT_PROMPT

logger = logging.getLogger(__name__)

ACTIONS = (
    'addBird', 'updateBird', 'deleteBird',
    'addCage', 'updateCage', 'deleteCage',
    'addNote', 'updateNote', 'deleteNote',
    'addTransaction', 'deleteTransaction',
    'addSpecies', 'deleteSpecies',
    'geneticsResult', 'answer',
)
DISPLAY_ONLY_ACTIONS = ('geneticsResult', 'answer')
DELETE_ACTIONS = {
    'deleteBird': Category.BIRD,
    'deleteCage': Category.CAGE,
    'deleteNote': Category.NOTE_REMINDER,
    'deleteTransaction': Category.TRANSACTION,
    'deleteSpecies': Category.CUSTOM_SPECIES,
}
CONTEXT_CATEGORIES = (
    Category.BIRD, Category.CAGE, Category.NOTE_REMINDER, Category.TRANSACTION, Category.CUSTOM_SPECIES,
)

OVERLOADED_MESSAGE = 'The AI model is currently overloaded. Please try again in a moment.'
UNAVAILABLE_MESSAGE = "Couldn't connect right now. Please try again."

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def snake_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """``{'ringNumber': ...}`` -> ``{'ring_number': ...}``; snake_case keys pass through."""
    return {_CAMEL_BOUNDARY.sub('_', key).lower(): value for key, value in data.items()}


def build_context(items) -> str:
    return json.dumps(
        [entity_to_dict(item) for item in items if item.category in CONTEXT_CATEGORIES],
        ensure_ascii=False,
    )


# =============================================================================
# Asking
# =============================================================================

def ask_assistant(
    *, query: str, items, currency: str = DEFAULT_CURRENCY, client: Optional[InferenceClient] = None,
) -> Dict[str, Any]:
    """
    Ask the model what to do about ``query``.

    Returns ``{'actions', 'response', 'summary'}``. Failures never raise; they
    come back as ``{'actions': [], 'response': <friendly text>, 'error': <detail>}``.
    """
    content = f'User query:\n"{query}"\n\nAviary context (existing data):\n{build_context(items)}'
    try:
        reply = get_inference_client(client).complete_json(ASSISTANT_PROMPT, content)
    except InferenceOverloadedError as e:
        logger.error('Assistant request failed: %s', e)
        return failed_reply(OVERLOADED_MESSAGE, e)
    except InferenceError as e:
        logger.error('Assistant request failed: %s', e)
        return failed_reply(UNAVAILABLE_MESSAGE, e)

    actions = clean_actions(reply.get('actions'))
    response = reply.get('response')
    if not isinstance(response, str) or not response.strip():
        return failed_reply(UNAVAILABLE_MESSAGE, 'Received an empty response from the AI model.')
    return {'actions': actions, 'response': response, 'summary': describe_actions(actions, currency)}


def failed_reply(message: str, error) -> Dict[str, Any]:
    return {'actions': [], 'response': message, 'error': str(error)}


def clean_actions(raw) -> List[Dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    actions = []
    for entry in raw:
        if not isinstance(entry, dict) or entry.get('action') not in ACTIONS:
            logger.warning('Dropping unknown assistant action: %r', entry)
            continue
        data = entry.get('data')
        actions.append({'action': entry['action'], 'data': data if isinstance(data, dict) else None})
    return actions


def describe_actions(actions: Sequence[Mapping], currency: str = DEFAULT_CURRENCY) -> List[str]:
    """One line per data-changing action, for the confirmation prompt."""
    lines = []
    for action in actions:
        kind, data = action['action'], action.get('data') or {}
        if kind in DISPLAY_ONLY_ACTIONS:
            continue
        if kind == 'addBird':
            lines.append(f"Add Bird: {data.get('species') or 'Unknown'}")
        elif kind == 'addNote':
            lines.append(f"Add Note: \"{data.get('title') or 'Untitled'}\"")
        elif kind == 'addCage':
            names = data.get('names') or []
            lines.append(f"Add {len(names) or 1} cage(s): {', '.join(names)}")
        elif kind == 'addTransaction':
            lines.append(f"Add {data.get('type', '')} transaction for {format_currency(data.get('amount'), currency)}")
        elif kind == 'addSpecies':
            name, days = data.get('name'), snake_keys(data).get('incubation_period')
            if not name or not days:
                lines.append('Add Species: Incomplete data from AI')
            else:
                lines.append(f'Add Species: {name} ({days} days)')
        elif kind in DELETE_ACTIONS:
            noun = kind[len('delete'):].lower()
            lines.append(f"Delete {len(data.get('ids') or [])} {noun}(s)")
        else:
            noun = kind[len('update'):]
            lines.append(f"Update {noun} (ID: {data.get('id') or 'N/A'})")
    return lines


# =============================================================================
# Replaying
# =============================================================================

@dataclass
class ReplayPlan:
    inserts: List[Any] = field(default_factory=list)
    changes: Dict[str, dict] = field(default_factory=dict)
    deletes: List[str] = field(default_factory=list)
    summary: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def change(self, item_id: str, fields: Mapping):
        self.changes.setdefault(item_id, {'id': item_id}).update(fields)


class _Planner:
    def __init__(self, items, today):
        self.items = tuple(items)
        self.today = today
        self.plan = ReplayPlan()
        self._cages = {item.id: item for item in self.items if isinstance(item, Cage)}
        self._new_cage_ids = set()
        self._handlers = {
            'addBird': self.add_bird,
            'updateBird': self.update_bird,
            'addCage': self.add_cage,
            'updateCage': self.update_cage,
            'addNote': self.add_note,
            'updateNote': self.update_note,
            'addTransaction': self.add_transaction,
            'addSpecies': self.add_species,
        }

    def replay(self, kind: str, data: Optional[Mapping]):
        if kind in DISPLAY_ONLY_ACTIONS:
            return
        if not isinstance(data, Mapping):
            self.plan.skipped.append(f'{kind}: no data')
            return
        if kind in DELETE_ACTIONS:
            self.delete(DELETE_ACTIONS[kind], data)
            return
        handler = self._handlers.get(kind)
        if handler is None:
            self.plan.skipped.append(f'{kind}: unsupported action')
            return
        try:
            handler(data)
        except EntityValidationError as e:
            self.plan.skipped.append(f'{kind}: {e}')

    # Birds

    def add_bird(self, data):
        fields = self._fields(data)
        cage_name = fields.pop('cage_name', None)
        bird = create_entity(Category.BIRD, self._fold_sale(fields))
        self.plan.inserts.append(bird)
        if cage_name:
            self._place_in_cage(bird.id, str(cage_name))
        self.plan.summary.append(f'Added bird: {bird_identifier(bird)}')

    def update_bird(self, data):
        item_id, fields = self._update_target(data)
        cage_name = fields.pop('cage_name', None)
        self._stage_update(item_id, Category.BIRD, self._fold_sale(fields))
        if cage_name:
            self._place_in_cage(item_id, str(cage_name))
        self.plan.summary.append(f'Updated bird ID {item_id}')

    def _fold_sale(self, fields):
        price = fields.pop('sale_price', None)
        sale_date = fields.pop('sale_date', None)
        buyer = fields.pop('buyer_info', None)
        if fields.get('status') == BirdStatus.SOLD and price:
            fields['sale_details'] = {
                'date': sale_date or self.today,
                'price': price,
                'buyer': buyer or 'Unknown',
            }
        return fields

    # Cages

    def add_cage(self, data):
        fields = self._fields(data)
        names = fields.get('names') or ([fields['name']] if fields.get('name') else [])
        cages = [create_entity(Category.CAGE, {'name': name, 'cost': fields.get('cost')}) for name in names]
        for cage in cages:
            self._register_new_cage(cage)
            if cage.cost and cage.cost > 0:
                self.plan.inserts.append(create_entity(Category.TRANSACTION, {
                    'type': TransactionType.EXPENSE,
                    'date': self.today,
                    'description': f'Purchase of cage: {cage.name}',
                    'amount': cage.cost,
                }))
        if cages:
            self.plan.summary.append(f'Added {len(cages)} cage(s)')

    def update_cage(self, data):
        item_id, fields = self._update_target(data)
        self._stage_update(item_id, Category.CAGE, fields)
        self.plan.summary.append('Updated cage')

    def _register_new_cage(self, cage):
        self.plan.inserts.append(cage)
        self._new_cage_ids.add(cage.id)
        self._cages[cage.id] = cage

    def _set_cage_birds(self, cage, bird_ids):
        cage = replace(cage, bird_ids=tuple(bird_ids))
        self._cages[cage.id] = cage
        if cage.id in self._new_cage_ids:
            self.plan.inserts = [cage if item.id == cage.id else item for item in self.plan.inserts]
        else:
            self.plan.change(cage.id, {'bird_ids': cage.bird_ids})

    def _place_in_cage(self, bird_id, cage_name):
        """Move a bird into the named cage, creating the cage if none matches."""
        wanted = cage_name.strip().lower()
        target = None
        for cage in list(self._cages.values()):
            if cage.name.strip().lower() == wanted:
                target = target or cage
            elif bird_id in cage.bird_ids:
                self._set_cage_birds(cage, [i for i in cage.bird_ids if i != bird_id])
        if target is None:
            self._register_new_cage(create_entity(Category.CAGE, {'name': cage_name, 'bird_ids': [bird_id]}))
        elif bird_id not in target.bird_ids:
            self._set_cage_birds(target, list(target.bird_ids) + [bird_id])

    # Notes, transactions, species

    def add_note(self, data):
        note = create_entity(Category.NOTE_REMINDER, self._fields(data))
        self.plan.inserts.append(note)
        self.plan.summary.append(f'Added note: "{note.title}"')

    def update_note(self, data):
        item_id, fields = self._update_target(data)
        self._stage_update(item_id, Category.NOTE_REMINDER, fields)
        self.plan.summary.append('Updated note')

    def add_transaction(self, data):
        fields = self._fields(data)
        fields.setdefault('date', self.today)
        fields['date'] = fields['date'] or self.today
        transaction = create_entity(Category.TRANSACTION, fields)
        self.plan.inserts.append(transaction)
        self.plan.summary.append(f'Added {transaction.type} transaction')

    def add_species(self, data):
        fields = self._fields(data)
        if not fields.get('name') or not fields.get('incubation_period'):
            self.plan.skipped.append('Cannot add species without a name and incubation period.')
            return
        species = create_entity(Category.CUSTOM_SPECIES, {
            'name': fields['name'],
            'incubation_period': fields['incubation_period'],
            'subspecies': fields.get('subspecies') or [],
        })
        self.plan.inserts.append(species)
        self.plan.summary.append(f'Added species: {species.name}')

    # Deletes

    def delete(self, category, data):
        for item_id in data.get('ids') or []:
            item = resolve(self.items, item_id)
            if item is None or item.category != category:
                self.plan.skipped.append(f'No {category} with id {item_id}')
            elif item_id not in self.plan.deletes:
                self.plan.deletes.append(item_id)

    # Helpers

    def _fields(self, data):
        fields = snake_keys(data)
        fields.pop('id', None)
        fields.pop('category', None)
        return fields

    def _update_target(self, data):
        item_id = data.get('id')
        updates = data.get('updates')
        if not item_id or not isinstance(updates, Mapping):
            raise EntityValidationError("An update needs the 'id' of the item and its 'updates'")
        return item_id, self._fields(updates)

    def _stage_update(self, item_id, category, fields):
        current = self._cages.get(item_id) or resolve(self.items, item_id)
        if current is None or current.category != category:
            raise EntityValidationError(f'No {category} with id {item_id}')
        if item_id in self.plan.changes:
            current = apply_updates(current, self.plan.changes[item_id])
        updated = apply_updates(current, fields)
        if isinstance(updated, Cage):
            self._cages[item_id] = updated
        if fields:
            self.plan.change(item_id, fields)


def plan_replay(actions: Sequence[Mapping], items, today=None) -> ReplayPlan:
    """Entities to add, changes to make and ids to delete for confirmed actions."""
    planner = _Planner(items, today or timezone.localdate())
    for action in actions:
        planner.replay(action.get('action'), action.get('data'))
    return planner.plan


async def confirm_actions(*, store: ItemStore, actions: Sequence[Mapping], today=None) -> Dict[str, Any]:
    """
    Replay confirmed actions: adds as one batch, then updates as one batch,
    then deletes (cascading for birds). Stops at the first failed step.
    """
    plan = plan_replay(actions, store.snapshot(), today=today)
    summary = list(plan.summary)
    if plan.deletes:
        summary.append(f'Deleted {len(plan.deletes)} item(s)')

    steps = []
    if plan.inserts:
        steps.append(lambda: store.add_many(plan.inserts, label='assistant'))
    if plan.changes:
        steps.append(lambda: store.update_many(list(plan.changes.values())))
    for item_id in plan.deletes:
        steps.append(lambda item_id=item_id: store.delete_item(item_id))

    errors = []
    for step in steps:
        result = await step()
        if not result.ok:
            logger.error('Assistant replay stopped: %s', result.error)
            errors.append(str(result.error))
            break

    return {
        'ok': not errors,
        'message': ', '.join(summary) + '.' if summary else 'No actions were taken.',
        'summary': summary,
        'skipped': plan.skipped,
        'errors': errors,
    }
