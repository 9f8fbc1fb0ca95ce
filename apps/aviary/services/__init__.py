"""Services for the aviary entity graph."""

from .exceptions import (
    AviaryServiceError,
    EntityValidationError,
    UnknownCategoryError,
    DuplicateItemError,
    RemoteSyncError,
)
from .entities import (
    Entity,
    Bird,
    Cage,
    Pair,
    BreedingRecord,
    NoteReminder,
    Transaction,
    Permit,
    CustomSpecies,
    CustomMutation,
    create_entity,
    entity_from_dict,
    entity_to_dict,
    bird_identifier,
    resolve,
)
from .commands import MutationCommand, apply_command, revert_command
from .remote_sync import RemoteStore, DatabaseRemoteStore, table_for_category
from .local_cache import LocalCacheStore, serialize_collection, deserialize_collection
from .item_store import ItemStore, MutationResult, remote_store_for, load_store
from .pedigree import build_pedigree
from .analytics import aviary_summary

__all__ = [
    # Exceptions
    'AviaryServiceError',
    'EntityValidationError',
    'UnknownCategoryError',
    'DuplicateItemError',
    'RemoteSyncError',
    # Entities
    'Entity',
    'Bird',
    'Cage',
    'Pair',
    'BreedingRecord',
    'NoteReminder',
    'Transaction',
    'Permit',
    'CustomSpecies',
    'CustomMutation',
    'create_entity',
    'entity_from_dict',
    'entity_to_dict',
    'bird_identifier',
    'resolve',
    # Mutation engine
    'MutationCommand',
    'apply_command',
    'revert_command',
    'ItemStore',
    'MutationResult',
    # Remote stores
    'RemoteStore',
    'DatabaseRemoteStore',
    'LocalCacheStore',
    'table_for_category',
    'serialize_collection',
    'deserialize_collection',
    'remote_store_for',
    'load_store',
    # Read models
    'build_pedigree',
    'aviary_summary',
]
