"""
Inference client.

Talks to an OpenAI-compatible chat completions endpoint and always asks for a
JSON object back. Every failure surfaces as :class:`InferenceError`; an
overloaded endpoint (HTTP 503) as :class:`InferenceOverloadedError`.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

import requests
from django.conf import settings

from .exceptions import InferenceError, InferenceOverloadedError

logger = logging.getLogger(__name__)

Content = Union[str, List[Dict[str, Any]]]


class InferenceClient:
    endpoint = '/chat/completions'

    def __init__(self, base_url: str, api_key: str = '', model: str = '', timeout: float = 60):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> 'InferenceClient':
        return cls(
            base_url=settings.AI_INFERENCE_URL,
            api_key=settings.AI_API_KEY,
            model=settings.AI_MODEL,
            timeout=settings.AI_TIMEOUT,
        )

    def complete_json(self, system_prompt: str, content: Content, temperature: float = 0.2) -> Dict[str, Any]:
        """
        Send one system prompt and one user message, return the parsed JSON reply.

        ``content`` is plain text, or a list of content parts when an image
        is attached.

        Raises:
            InferenceOverloadedError: If the endpoint answers 503
            InferenceError: On any other failure or a non-JSON reply
        """
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'

        try:
            response = requests.post(
                f'{self.base_url}{self.endpoint}',
                json={
                    'model': self.model,
                    'messages': [
                        {'role': 'system', 'content': system_prompt},
                        {'role': 'user', 'content': content},
                    ],
                    'temperature': temperature,
                    'response_format': {'type': 'json_object'},
                    'stream': False,
                },
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error('Inference request failed: %s', e)
            raise InferenceError(f'Could not reach the inference endpoint: {e}') from e

        if response.status_code == 503:
            raise InferenceOverloadedError('Inference endpoint returned 503: model overloaded')
        if response.status_code != 200:
            logger.error('Inference endpoint returned %s: %s', response.status_code, response.text[:500])
            raise InferenceError(f'Inference endpoint returned {response.status_code}')

        try:
            reply = response.json()['choices'][0]['message']['content']
            data = json.loads(reply)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InferenceError(f'Inference endpoint returned an unusable reply: {e}') from e
        if not isinstance(data, dict):
            raise InferenceError('Inference endpoint did not return a JSON object')
        return data


def get_inference_client(client: Optional[InferenceClient] = None) -> InferenceClient:
    return client or InferenceClient.from_settings()
