"""
Remote sync adapters.

The item store hands every mutation command to a :class:`RemoteStore`. The
database adapter keeps one table per entity category, scopes every query to
the owning user and writes each command inside a single database
transaction, so a failed command leaves no partial rows behind.
"""
import datetime as dt
import logging
from dataclasses import is_dataclass
from decimal import InvalidOperation
from typing import Tuple

from asgiref.sync import sync_to_async
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..choices import Category
from ..models import (
    BirdRow, BreedingRecordRow, CageRow, CustomMutationRow, CustomSpeciesRow,
    NoteReminderRow, PairRow, PermitRow, TransactionRow,
)
from .commands import MutationCommand
from .entities import (
    Entity, changed_fields, entity_from_dict, entity_type, field_names, json_ready,
)
from .exceptions import RemoteSyncError, UnknownCategoryError

logger = logging.getLogger(__name__)

TABLES = {
    Category.BIRD: BirdRow,
    Category.CAGE: CageRow,
    Category.PAIR: PairRow,
    Category.BREEDING_RECORD: BreedingRecordRow,
    Category.NOTE_REMINDER: NoteReminderRow,
    Category.TRANSACTION: TransactionRow,
    Category.PERMIT: PermitRow,
    Category.CUSTOM_SPECIES: CustomSpeciesRow,
    Category.CUSTOM_MUTATION: CustomMutationRow,
}


def table_for_category(category: str):
    """Resolve a category tag to the model holding its rows."""
    try:
        return TABLES[category]
    except KeyError:
        raise UnknownCategoryError(f"No remote table for category '{category}'")


def column_value(value):
    if isinstance(value, tuple) or (is_dataclass(value) and not isinstance(value, type)):
        return json_ready(value)
    return value


def row_values(entity: Entity) -> dict:
    return {
        name: column_value(getattr(entity, name))
        for name in field_names(entity)
        if name != 'id'
    }


def row_to_entity(row) -> Entity:
    data = {name: getattr(row, name) for name in field_names(entity_type(row.category)) if name != 'id'}
    data['id'] = row.item_id
    data['category'] = row.category
    return entity_from_dict(data)


class RemoteStore:
    """Interface of the persistence side of the item store."""

    async def fetch_all(self) -> Tuple[Entity, ...]:
        """Every entity owned by the current user, most recent first."""
        raise NotImplementedError

    async def apply(self, command: MutationCommand) -> None:
        """
        Persist a command: inserts, then updates, then deletes.

        Raises:
            RemoteSyncError: If the command could not be persisted
        """
        raise NotImplementedError


class DatabaseRemoteStore(RemoteStore):
    """Remote store backed by the Django ORM, one table per category."""

    def __init__(self, owner):
        self.owner = owner

    def __repr__(self):
        return f'DatabaseRemoteStore(owner={self.owner.pk})'

    async def fetch_all(self) -> Tuple[Entity, ...]:
        return await sync_to_async(self.fetch_all_sync)()

    async def apply(self, command: MutationCommand) -> None:
        await sync_to_async(self.apply_sync)(command)

    def fetch_all_sync(self) -> Tuple[Entity, ...]:
        rows = []
        for model in TABLES.values():
            rows.extend(model.objects.filter(owner=self.owner))
        rows.sort(key=lambda row: row.created_at, reverse=True)
        return tuple(row_to_entity(row) for row in rows)

    def apply_sync(self, command: MutationCommand) -> None:
        try:
            with transaction.atomic():
                self._insert(command.inserts)
                for before, after in command.updates:
                    self._update(before, after)
                for _, entity in command.deletes:
                    table_for_category(entity.category).objects.filter(
                        owner=self.owner, item_id=entity.id
                    ).delete()
        except (DatabaseError, ValidationError, ValueError, InvalidOperation) as e:
            raise RemoteSyncError(f'Could not persist {command}: {e}') from e
        logger.debug('Persisted %s for owner %s', command, self.owner.pk)

    def _insert(self, entities):
        # Later timestamps for earlier batch members keep the batch order on reload.
        now = timezone.now()
        count = len(entities)
        for index, entity in enumerate(entities):
            table_for_category(entity.category).objects.create(
                item_id=entity.id,
                owner=self.owner,
                category=str(entity.category),
                created_at=now + dt.timedelta(microseconds=count - index),
                **row_values(entity),
            )

    def _update(self, before: Entity, after: Entity):
        names = changed_fields(before, after)
        if not names:
            return
        updated = table_for_category(after.category).objects.filter(
            owner=self.owner, item_id=after.id
        ).update(**{name: column_value(getattr(after, name)) for name in names})
        if not updated:
            raise RemoteSyncError(f"Item '{after.id}' does not exist in the remote store")
