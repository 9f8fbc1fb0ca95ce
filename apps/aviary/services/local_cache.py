"""
Local durable cache.

When no database store is configured, the whole collection is kept as one
JSON document per owner. Every command rewrites the document in full and a
restore reads it back verbatim: same ids, same field values, same order.
"""
import json
import logging
import os
from pathlib import Path
from typing import Sequence, Tuple

from .commands import MutationCommand, apply_command
from .entities import Entity, entity_from_dict, entity_to_dict
from .exceptions import EntityValidationError, RemoteSyncError
from .remote_sync import RemoteStore

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 1


def serialize_collection(items: Sequence[Entity]) -> str:
    return json.dumps(
        {
            'version': CACHE_FORMAT_VERSION,
            'items': [entity_to_dict(item) for item in items],
        },
        ensure_ascii=False,
    )


def deserialize_collection(blob: str) -> Tuple[Entity, ...]:
    """
    Restore a collection written by :func:`serialize_collection`.

    Raises:
        EntityValidationError: If the blob is not a valid collection
    """
    try:
        data = json.loads(blob)
    except ValueError as e:
        raise EntityValidationError(f'Collection data is not valid JSON: {e}') from e
    if not isinstance(data, dict) or not isinstance(data.get('items'), list):
        raise EntityValidationError("Collection data must be an object with an 'items' list")
    return tuple(entity_from_dict(item) for item in data['items'])


class LocalCacheStore(RemoteStore):
    """Remote store writing the whole collection to a single JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def __repr__(self):
        return f'LocalCacheStore({str(self.path)!r})'

    async def fetch_all(self) -> Tuple[Entity, ...]:
        return self.load()

    async def apply(self, command: MutationCommand) -> None:
        self.save(apply_command(self.load(), command))
        logger.debug('Cached %s in %s', command, self.path)

    def load(self) -> Tuple[Entity, ...]:
        if not self.path.exists():
            return ()
        try:
            return deserialize_collection(self.path.read_text(encoding='utf-8'))
        except (OSError, EntityValidationError) as e:
            raise RemoteSyncError(f'Could not read local cache {self.path}: {e}') from e

    def save(self, items: Sequence[Entity]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(serialize_collection(items), encoding='utf-8')
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise RemoteSyncError(f'Could not write local cache {self.path}: {e}') from e
