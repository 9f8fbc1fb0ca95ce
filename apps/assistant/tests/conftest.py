import json
from unittest.mock import Mock

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import User
from apps.aviary.services import Bird, Cage, RemoteStore, RemoteSyncError


class FakeInferenceClient:
    """Inference client answering with a canned reply, or raising."""

    def __init__(self, reply=None, error=None):
        self.reply = reply or {}
        self.error = error
        self.calls = []

    def complete_json(self, system_prompt, content, temperature=0.2):
        self.calls.append((system_prompt, content))
        if self.error is not None:
            raise self.error
        return self.reply


class UnreachableRemoteStore(RemoteStore):
    async def fetch_all(self):
        return ()

    async def apply(self, command):
        raise RemoteSyncError('database is down')


def chat_completion(payload, status_code=200):
    """Mocked ``requests`` response of a chat completions endpoint."""
    response = Mock(status_code=status_code, text=json.dumps(payload))
    response.json.return_value = {
        'choices': [{'message': {'role': 'assistant', 'content': json.dumps(payload)}}],
    }
    return response


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
def authenticated_client(api_client, user):
    """Return an authenticated API client using JWT."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def inference_settings(settings):
    settings.AI_INFERENCE_URL = 'http://inference.test/v1'
    settings.AI_API_KEY = 'test-key'
    settings.AI_MODEL = 'test-model'
    settings.DOCUMENT_EXTRACTION_URL = 'http://extract.test/extract'
    return settings


@pytest.fixture
def flock():
    """A cock in 'Flight 1' and an empty 'Flight 2'."""
    return (
        Cage(id='c1', name='Flight 1', bird_ids=('b1',)),
        Cage(id='c2', name='Flight 2'),
        Bird(id='b1', species='Budgerigar', sex='male', ring_number='A123'),
    )
