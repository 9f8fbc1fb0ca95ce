"""
Pedigree of a bird, built from the father and mother references.

Parent references are weak: a bird may have no parent recorded
(``unknown``) or point at a parent that has since been deleted
(``not_found``). Both end their branch. The tree stops after
:data:`PEDIGREE_DEPTH` generations, which also ends any reference cycle.

Example::

    tree = build_pedigree(store.snapshot(), 'b1')
    tree['label']              # 'Budgerigar (A123)'
    tree['father']['state']    # 'unknown'
"""
from typing import Any, Dict, Iterable, Optional

from .entities import Bird, Entity, bird_identifier

PEDIGREE_DEPTH = 5

FOUND = 'found'
UNKNOWN = 'unknown'
NOT_FOUND = 'not_found'

_LABELS = {UNKNOWN: 'Unknown', NOT_FOUND: 'Not Found'}


def build_pedigree(
    items: Iterable[Entity], bird_id: str, max_depth: int = PEDIGREE_DEPTH,
) -> Dict[str, Any]:
    """
    Ancestry tree of a bird, most recent generation first.

    Args:
        items: The collection snapshot
        bird_id: The subject of the tree
        max_depth: Generations of ancestors to include

    Returns:
        Nested nodes of ``role``, ``level``, ``bird_id``, ``state``
        (``found``, ``unknown`` or ``not_found``), ``label``, ``father`` and
        ``mother``. Parents are ``None`` on unresolved nodes and on the last
        generation.
    """
    birds = {item.id: item for item in items if isinstance(item, Bird)}
    return _node(birds, bird_id, 'Subject', 0, max_depth)


def _node(birds, bird_id: Optional[str], role: str, level: int, max_depth: int) -> Dict[str, Any]:
    bird = birds.get(bird_id) if bird_id else None
    if bird is None:
        state = NOT_FOUND if bird_id else UNKNOWN
        return {
            'role': role,
            'level': level,
            'bird_id': bird_id,
            'state': state,
            'label': _LABELS[state],
            'father': None,
            'mother': None,
        }

    expand = level < max_depth
    return {
        'role': role,
        'level': level,
        'bird_id': bird.id,
        'state': FOUND,
        'label': bird_identifier(bird),
        'father': _node(birds, bird.father_id, 'Father', level + 1, max_depth) if expand else None,
        'mother': _node(birds, bird.mother_id, 'Mother', level + 1, max_depth) if expand else None,
    }
