"""
Cascading delete planning.

Deleting a bird or a permit touches other records that refer to it. These
functions inspect the collection and return a single command holding every
field update and every deletion, so the whole cascade is applied, persisted
and (on failure) reverted as one unit.

Bird deletion:
    1. Remove the bird from the cage that houses it
    2. Clear ``mate_id`` on its mate (one level only)
    3. Delete every pair naming the bird as male or female
    4. Drop the bird from its parents' ``offspring_ids`` and clear
       ``father_id`` / ``mother_id`` on its offspring
    5. Clear ``related_bird_id`` on transactions and ``chick_id`` on eggs,
       and drop the id from note and sub-task bird lists

Permit deletion clears ``permit_id`` on every bird holding the permit; the
birds themselves are kept.
"""
from collections import OrderedDict
from dataclasses import replace
from typing import Dict, Optional, Sequence

from .commands import MutationCommand, build_delete
from .entities import Bird, BreedingRecord, Cage, Entity, NoteReminder, Pair, Permit, Transaction


def _without(ids, item_id):
    return tuple(i for i in ids if i != item_id)


def plan_bird_delete(items: Sequence[Entity], bird_id: str) -> Optional[MutationCommand]:
    """Command deleting a bird and repairing every reference to it, or None if absent."""
    by_id = {item.id: item for item in items}
    bird = by_id.get(bird_id)
    if not isinstance(bird, Bird):
        return None

    changes: Dict[str, dict] = OrderedDict()

    def change(item_id, **fields):
        changes.setdefault(item_id, {'id': item_id}).update(fields)

    cage = next(
        (item for item in items if isinstance(item, Cage) and bird_id in item.bird_ids),
        None,
    )
    if cage is not None:
        change(cage.id, bird_ids=_without(cage.bird_ids, bird_id))

    mate = by_id.get(bird.mate_id) if bird.mate_id else None
    if isinstance(mate, Bird):
        change(mate.id, mate_id=None)

    for parent_id in (bird.father_id, bird.mother_id):
        parent = by_id.get(parent_id) if parent_id else None
        if isinstance(parent, Bird) and bird_id in parent.offspring_ids:
            change(parent.id, offspring_ids=_without(parent.offspring_ids, bird_id))

    for item in items:
        if isinstance(item, Bird) and item.id != bird_id:
            if item.father_id == bird_id:
                change(item.id, father_id=None)
            if item.mother_id == bird_id:
                change(item.id, mother_id=None)
        elif isinstance(item, Transaction) and item.related_bird_id == bird_id:
            change(item.id, related_bird_id=None)
        elif isinstance(item, BreedingRecord) and any(egg.chick_id == bird_id for egg in item.eggs):
            change(item.id, eggs=tuple(
                replace(egg, chick_id=None) if egg.chick_id == bird_id else egg
                for egg in item.eggs
            ))
        elif isinstance(item, NoteReminder):
            mentioned = bird_id in item.associated_bird_ids or any(
                bird_id in task.associated_bird_ids for task in item.sub_tasks
            )
            if mentioned:
                change(
                    item.id,
                    associated_bird_ids=_without(item.associated_bird_ids, bird_id),
                    sub_tasks=tuple(
                        replace(task, associated_bird_ids=_without(task.associated_bird_ids, bird_id))
                        for task in item.sub_tasks
                    ),
                )

    doomed = [bird_id] + [
        item.id for item in items
        if isinstance(item, Pair) and bird_id in (item.male_id, item.female_id)
    ]
    return build_delete(items, doomed, changes=changes.values(), label='delete_bird')


def plan_permit_delete(items: Sequence[Entity], permit_id: str) -> Optional[MutationCommand]:
    """Command deleting a permit and clearing it from its birds, or None if absent."""
    permit = next((item for item in items if item.id == permit_id), None)
    if not isinstance(permit, Permit):
        return None
    changes = [
        {'id': item.id, 'permit_id': None}
        for item in items
        if isinstance(item, Bird) and item.permit_id == permit_id
    ]
    return build_delete(items, [permit_id], changes=changes, label='delete_permit')
