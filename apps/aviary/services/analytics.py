"""
Aviary Analytics
================

Read-only summaries of a collection snapshot for dashboards and charts.

Functions:
    species_distribution: Bird count per species
    status_counts: Bird count per status
    births_per_month: Birds born in each of the last twelve months
    aviary_summary: All of the above in one payload

Every function returns plain lists of dictionaries, ready for JSON
responses.
"""
import datetime as dt
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone

from ..choices import BirdStatus
from .entities import Bird, Entity

GROWTH_MONTHS = 12


def _birds(items: Iterable[Entity]) -> List[Bird]:
    return [item for item in items if isinstance(item, Bird)]


def species_distribution(items: Iterable[Entity]) -> List[Dict[str, Any]]:
    """Bird count per species, in order of first appearance."""
    counts = Counter(bird.species for bird in _birds(items))
    return [{'name': name, 'value': value} for name, value in counts.items()]


def status_counts(items: Iterable[Entity]) -> List[Dict[str, Any]]:
    """Bird count for every status, including statuses with no birds."""
    counts = dict.fromkeys(BirdStatus.values, 0)
    for bird in _birds(items):
        if bird.status in counts:
            counts[bird.status] += 1
    return [{'name': name, 'value': value} for name, value in counts.items()]


def _shift_month(month: dt.date, offset: int) -> dt.date:
    index = month.year * 12 + month.month - 1 + offset
    return dt.date(index // 12, index % 12 + 1, 1)


def births_per_month(items: Iterable[Entity], today: Optional[dt.date] = None) -> List[Dict[str, Any]]:
    """
    Birds born in each of the last twelve months, oldest month first.

    Args:
        items: The collection snapshot
        today: Reference date; defaults to the current local date

    Returns:
        list[dict]: ``period`` (``'2024-06'``), ``label`` (``'Jun 2024'``)
        and ``value`` for every month, months without births included.
    """
    current = (today or timezone.localdate()).replace(day=1)
    months = [_shift_month(current, offset) for offset in range(1 - GROWTH_MONTHS, 1)]
    counts = dict.fromkeys(months, 0)

    for bird in _birds(items):
        if bird.birth_date is None:
            continue
        month = bird.birth_date.replace(day=1)
        if month in counts:
            counts[month] += 1

    return [
        {'period': month.strftime('%Y-%m'), 'label': month.strftime('%b %Y'), 'value': value}
        for month, value in counts.items()
    ]


def aviary_summary(items: Iterable[Entity], today: Optional[dt.date] = None) -> Dict[str, Any]:
    items = tuple(items)
    return {
        'species': species_distribution(items),
        'statuses': status_counts(items),
        'births': births_per_month(items, today),
    }
