"""
Item store: the single owner of a user's aviary collection.

Every mutation is optimistic. The command is applied to local state first,
so subsequent reads see it at once, and only then handed to the remote
store. If the remote store fails, the command is reverted and the caller
gets a failed :class:`MutationResult`. Mutations never raise.

Usage::

    store = await ItemStore.load(remote_store_for(request.user))
    result = await store.delete_bird('b1')
    if not result.ok:
        ...  # result.error holds the validation or sync error
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from django.conf import settings

from ..choices import Category
from .cascades import plan_bird_delete, plan_permit_delete
from .commands import (
    MutationCommand, apply_command, build_add, build_delete, build_update, revert_command,
)
from .entities import Entity, NoteReminder, next_reminder_date, resolve
from .exceptions import AviaryServiceError, EntityValidationError, RemoteSyncError
from .local_cache import LocalCacheStore
from .remote_sync import DatabaseRemoteStore, RemoteStore

logger = logging.getLogger(__name__)

Subscriber = Callable[[Tuple[Entity, ...]], None]


@dataclass(frozen=True)
class MutationResult:
    ok: bool
    command: Optional[MutationCommand] = None
    error: Optional[AviaryServiceError] = None

    @property
    def changed(self) -> bool:
        return self.ok and self.command is not None

    @classmethod
    def noop(cls):
        return cls(ok=True)

    @classmethod
    def succeeded(cls, command):
        return cls(ok=True, command=command)

    @classmethod
    def failed(cls, error, command=None):
        return cls(ok=False, command=command, error=error)


class ItemStore:
    """Owned, most-recent-first collection of a single user's entities."""

    def __init__(self, items: Iterable[Entity] = (), remote: Optional[RemoteStore] = None):
        self._items: Tuple[Entity, ...] = tuple(items)
        self._subscribers: List[Subscriber] = []
        self.remote = remote

    @classmethod
    async def load(cls, remote: RemoteStore) -> 'ItemStore':
        """
        Hydrate a store from its remote store.

        Raises:
            RemoteSyncError: If the collection could not be fetched
        """
        return cls(await remote.fetch_all(), remote=remote)

    def __len__(self):
        return len(self._items)

    # =========================================================================
    # Reads
    # =========================================================================

    def snapshot(self) -> Tuple[Entity, ...]:
        return self._items

    def get(self, item_id: str) -> Optional[Entity]:
        return resolve(self._items, item_id)

    def of_category(self, category: str) -> Tuple[Entity, ...]:
        return tuple(item for item in self._items if item.category == category)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback(snapshot)`` after every local change; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # =========================================================================
    # Mutations
    # =========================================================================

    async def add_one(self, entity: Entity) -> MutationResult:
        return await self.add_many([entity], label='add_one')

    async def add_many(self, entities: Iterable[Entity], label: str = 'add_many') -> MutationResult:
        entities = tuple(entities)
        return await self._execute(lambda items: build_add(items, entities, label=label))

    async def update_one(self, item_id: str, fields: Mapping) -> MutationResult:
        return await self._execute(
            lambda items: build_update(items, [_change_for(item_id, fields)], label='update_one')
        )

    async def update_many(self, changes: Sequence[Mapping]) -> MutationResult:
        changes = tuple(changes)
        return await self._execute(lambda items: build_update(items, changes, label='update_many'))

    async def delete_one(self, item_id: str) -> MutationResult:
        return await self._execute(lambda items: build_delete(items, [item_id], label='delete_one'))

    async def delete_bird(self, bird_id: str) -> MutationResult:
        return await self._execute(lambda items: plan_bird_delete(items, bird_id))

    async def delete_permit(self, permit_id: str) -> MutationResult:
        return await self._execute(lambda items: plan_permit_delete(items, permit_id))

    async def delete_item(self, item_id: str) -> MutationResult:
        """Delete by id, cascading for birds and permits."""
        item = self.get(item_id)
        if item is None:
            return MutationResult.noop()
        if item.category == Category.BIRD:
            return await self.delete_bird(item_id)
        if item.category == Category.PERMIT:
            return await self.delete_permit(item_id)
        return await self.delete_one(item_id)

    async def complete_reminder(self, note_id: str) -> MutationResult:
        """
        Tick off a note. A recurring reminder moves to its next date
        instead of being marked completed.
        """
        note = self.get(note_id)
        if not isinstance(note, NoteReminder):
            return MutationResult.noop()
        next_date = next_reminder_date(note)
        fields = {'reminder_date': next_date} if next_date else {'completed': True}
        return await self._execute(
            lambda items: build_update(items, [_change_for(note_id, fields)], label='complete_reminder')
        )

    async def _execute(self, plan: Callable[[Tuple[Entity, ...]], Optional[MutationCommand]]) -> MutationResult:
        try:
            command = plan(self._items)
        except EntityValidationError as e:
            logger.warning('Rejected mutation: %s', e)
            return MutationResult.failed(e)
        if command is None or command.is_empty:
            return MutationResult.noop()

        self._replace(apply_command(self._items, command))
        logger.debug('Applied %s locally', command)
        if self.remote is None:
            return MutationResult.succeeded(command)

        try:
            await self.remote.apply(command)
        except RemoteSyncError as e:
            logger.error('Remote store rejected %s, reverting: %s', command, e)
            self._replace(revert_command(self._items, command))
            return MutationResult.failed(e, command)
        return MutationResult.succeeded(command)

    def _replace(self, items: Tuple[Entity, ...]):
        self._items = items
        for callback in list(self._subscribers):
            # A failing subscriber must not interrupt the mutation or its revert.
            try:
                callback(items)
            except Exception:
                logger.exception('Subscriber %r failed', callback)


def _change_for(item_id: str, fields: Mapping) -> dict:
    if 'id' in fields and fields['id'] != item_id:
        raise EntityValidationError("'id' cannot be changed")
    return {**fields, 'id': item_id}


def remote_store_for(user) -> RemoteStore:
    """The configured remote store for one owner."""
    if settings.AVIARY_STORAGE == 'local':
        return LocalCacheStore(Path(settings.AVIARY_LOCAL_CACHE_PATH) / f'{user.pk}.json')
    return DatabaseRemoteStore(user)


async def load_store(user) -> ItemStore:
    return await ItemStore.load(remote_store_for(user))
