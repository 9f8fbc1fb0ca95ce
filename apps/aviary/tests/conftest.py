import datetime as dt
from decimal import Decimal

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.aviary.services import (
    Bird, Cage, ItemStore, Pair, Permit, RemoteStore, RemoteSyncError, Transaction,
    apply_command,
)


class InMemoryRemoteStore(RemoteStore):
    """
    Remote store keeping rows in a list.

    Commands touching any id in ``failing_ids`` are rejected as a whole,
    leaving the stored rows untouched.
    """

    def __init__(self, items=(), failing_ids=()):
        self.items = tuple(items)
        self.failing_ids = set(failing_ids)
        self.applied = []

    async def fetch_all(self):
        return self.items

    async def apply(self, command):
        failing = self.failing_ids.intersection(command.affected_ids)
        if failing:
            raise RemoteSyncError(f'Could not persist {sorted(failing)}')
        self.items = apply_command(self.items, command)
        self.applied.append(command)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a test user."""
    return User.objects.create_user(
        email='keeper@example.com',
        password='TestPass123!',
        display_name='Bird Keeper',
    )


@pytest.fixture
def other_user(db):
    """Create and return another test user."""
    return User.objects.create_user(
        email='otherkeeper@example.com',
        password='OtherPass123!',
        display_name='Other Keeper',
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """Return an authenticated API client using JWT."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def local_storage(settings, tmp_path):
    """Switch the item store to the local JSON cache."""
    settings.AVIARY_STORAGE = 'local'
    settings.AVIARY_LOCAL_CACHE_PATH = str(tmp_path / 'aviary')
    return tmp_path / 'aviary'


# =============================================================================
# Aviary graph
# =============================================================================

@pytest.fixture
def mated_birds():
    """Birds "1" and "4", mates of each other."""
    return (
        Bird(id='1', species='Budgerigar', sex='male', ring_number='ZA-001', mate_id='4'),
        Bird(id='4', species='Budgerigar', sex='female', ring_number='ZA-004', mate_id='1'),
    )


@pytest.fixture
def aviary(mated_birds):
    """Mated birds housed in cage c1 and paired as p1, plus a permit and an expense."""
    male, female = mated_birds
    return (
        Cage(id='c1', name='Flight 1', bird_ids=('1', '4')),
        Pair(id='p1', male_id='1', female_id='4'),
        Permit(id='pm1', permit_number='TOPS-77', issuing_authority='CapeNature'),
        Transaction(
            id='x',
            type='expense',
            date=dt.date(2024, 3, 1),
            description='Seed',
            amount=Decimal('5'),
        ),
        Transaction(
            id='y',
            type='income',
            date=dt.date(2024, 3, 2),
            description='Sale',
            amount=Decimal('7'),
        ),
        male,
        female,
    )


@pytest.fixture
def remote(aviary):
    return InMemoryRemoteStore(aviary)


@pytest.fixture
def store(aviary, remote):
    return ItemStore(aviary, remote=remote)
