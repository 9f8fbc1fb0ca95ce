"""Document text extraction through an external endpoint."""
import logging

import requests
from django.conf import settings

from .exceptions import ExtractionError

logger = logging.getLogger(__name__)


def extract_document_text(*, document_url: str) -> str:
    """
    Plain text of the document at ``document_url``.

    The extraction endpoint receives ``{"url": ...}`` and answers
    ``{"text": ...}``.

    Raises:
        ExtractionError: If extraction is not configured or fails
    """
    endpoint = settings.DOCUMENT_EXTRACTION_URL
    if not endpoint:
        raise ExtractionError('Document extraction is not configured')

    try:
        response = requests.post(endpoint, json={'url': document_url}, timeout=settings.AI_TIMEOUT)
        response.raise_for_status()
        text = response.json()['text']
    except requests.exceptions.RequestException as e:
        logger.error('Text extraction failed for %s: %s', document_url, e)
        raise ExtractionError(f'Could not process document from URL: {e}') from e
    except (ValueError, KeyError, TypeError) as e:
        raise ExtractionError(f'Extraction endpoint returned an unusable reply: {e}') from e
    if not isinstance(text, str):
        raise ExtractionError('Extraction endpoint returned no text')
    return text
