"""
Mutation commands.

A command is a value describing one logical mutation of the collection: the
entities it inserts, the before/after pair of every entity it updates, and
every entity it deletes together with its position. Applying and reverting a
command are pure functions of the command and the current collection, so a
failed remote write is undone without diffing the whole collection.
"""
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .entities import Entity, apply_updates
from .exceptions import DuplicateItemError, EntityValidationError

Items = Tuple[Entity, ...]


@dataclass(frozen=True)
class MutationCommand:
    label: str
    inserts: Tuple[Entity, ...] = ()
    updates: Tuple[Tuple[Entity, Entity], ...] = ()
    deletes: Tuple[Tuple[int, Entity], ...] = ()
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def is_empty(self) -> bool:
        return not (self.inserts or self.updates or self.deletes)

    @property
    def affected_ids(self) -> List[str]:
        return (
            [entity.id for entity in self.inserts]
            + [before.id for before, _ in self.updates]
            + [entity.id for _, entity in self.deletes]
        )

    def __str__(self):
        return (
            f'{self.label}[{self.id}] +{len(self.inserts)} '
            f'~{len(self.updates)} -{len(self.deletes)}'
        )


def apply_command(items: Sequence[Entity], command: MutationCommand) -> Items:
    """New collection with the command applied; inserts go first, in order."""
    replaced = {after.id: after for _, after in command.updates}
    deleted = {entity.id for _, entity in command.deletes}
    remaining = tuple(
        replaced.get(item.id, item)
        for item in items
        if item.id not in deleted
    )
    return tuple(command.inserts) + remaining


def revert_command(items: Sequence[Entity], command: MutationCommand) -> Items:
    """New collection with the command undone, deleted entities back in place."""
    inserted = {entity.id for entity in command.inserts}
    restored = {before.id: before for before, _ in command.updates}
    result = [
        restored.get(item.id, item)
        for item in items
        if item.id not in inserted
    ]
    for position, entity in sorted(command.deletes, key=lambda pair: pair[0]):
        result.insert(min(position, len(result)), entity)
    return tuple(result)


# =============================================================================
# Builders
# =============================================================================

def build_add(items: Sequence[Entity], entities: Iterable[Entity], label: str = 'add') -> MutationCommand:
    """
    Command inserting new entities at the front of the collection.

    Raises:
        DuplicateItemError: If an id is already present or repeated in the batch
        EntityValidationError: If an entity fails validation
    """
    existing = {item.id for item in items}
    entities = tuple(entities)
    seen = set()
    for entity in entities:
        if not isinstance(entity, Entity):
            raise EntityValidationError(f'Cannot add {type(entity).__name__}; not an entity')
        if entity.id in existing or entity.id in seen:
            raise DuplicateItemError(f"An item with id '{entity.id}' already exists")
        seen.add(entity.id)
        entity.clean()
    return MutationCommand(label=label, inserts=entities)


def build_update(
    items: Sequence[Entity],
    changes: Iterable[Mapping],
    label: str = 'update',
) -> MutationCommand:
    """
    Command shallow-merging field changes into existing entities.

    Each change is a mapping with an ``id`` key plus the fields to merge.
    Changes for ids not in the collection are ignored. Several changes for
    the same id are merged in order.

    Raises:
        EntityValidationError: If a change lacks an id or holds invalid fields
    """
    by_id = {item.id: item for item in items}
    merged: Dict[str, Entity] = {}
    originals: Dict[str, Entity] = {}
    for change in changes:
        if not isinstance(change, Mapping) or not change.get('id'):
            raise EntityValidationError("Every update needs the 'id' of the item to change")
        item_id = change['id']
        current = merged.get(item_id, by_id.get(item_id))
        if current is None:
            continue
        originals.setdefault(item_id, by_id[item_id])
        merged[item_id] = apply_updates(current, change)

    updates = tuple(
        (originals[item_id], after)
        for item_id, after in merged.items()
        if after != originals[item_id]
    )
    return MutationCommand(label=label, updates=updates)


def build_delete(
    items: Sequence[Entity],
    ids: Iterable[str],
    changes: Optional[Iterable[Mapping]] = None,
    label: str = 'delete',
) -> MutationCommand:
    """
    Command removing entities by id, optionally with field changes to others.

    Unknown ids are ignored. Changes aimed at an entity that is also being
    deleted are dropped.
    """
    doomed = set(ids)
    deletes = tuple(
        (position, item)
        for position, item in enumerate(items)
        if item.id in doomed
    )
    updates = ()
    if changes:
        survivors = [change for change in changes if change.get('id') not in doomed]
        updates = build_update(items, survivors).updates
    return MutationCommand(label=label, updates=updates, deletes=deletes)
