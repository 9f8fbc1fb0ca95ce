"""Species and mutation identification from a photo."""
import logging
import re
from typing import Any, Dict, Optional

from .exceptions import InferenceError, InvalidImageError
from .inference import InferenceClient, get_inference_client
from .prompts import IDENTIFICATION_PROMPT

logger = logging.getLogger(__name__)

DATA_URI = re.compile(r'^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>[A-Za-z0-9+/=\s]+)$')


def identify_bird(
    *, photo_data_uri: str, user_description: Optional[str] = None, client: Optional[InferenceClient] = None,
) -> Dict[str, Any]:
    """
    Identify the bird in a photo.

    Args:
        photo_data_uri: ``data:image/<type>;base64,<data>``
        user_description: Optional notes on location, size or behaviour

    Returns:
        ``is_bird``, ``common_name``, ``latin_name``, ``confidence`` (0 to 1),
        ``physical_description``, ``potential_mutations`` and ``interesting_fact``

    Raises:
        InvalidImageError: If the photo is not an image data URI
        InferenceError: If the model call fails or returns an unusable reply
    """
    if not isinstance(photo_data_uri, str) or not DATA_URI.match(photo_data_uri.strip()):
        raise InvalidImageError('Invalid image data URI format.')

    notes = user_description.strip() if user_description else ''
    content = [
        {'type': 'text', 'text': f"User's notes: {notes}" if notes else 'No additional notes from the user.'},
        {'type': 'image_url', 'image_url': {'url': photo_data_uri.strip()}},
    ]
    reply = get_inference_client(client).complete_json(IDENTIFICATION_PROMPT, content)
    logger.info('Identification returned is_bird=%s', reply.get('is_bird'))
    return normalize_identification(reply)


def normalize_identification(reply: Dict[str, Any]) -> Dict[str, Any]:
    if 'is_bird' not in reply:
        raise InferenceError("Identification reply is missing 'is_bird'")

    try:
        confidence = float(reply.get('confidence') or 0)
    except (TypeError, ValueError):
        confidence = 0.0
    mutations = reply.get('potential_mutations')

    return {
        'is_bird': bool(reply['is_bird']),
        'common_name': str(reply.get('common_name') or ''),
        'latin_name': str(reply.get('latin_name') or ''),
        'confidence': min(max(confidence, 0.0), 1.0),
        'physical_description': str(reply.get('physical_description') or ''),
        'potential_mutations': [str(m) for m in mutations] if isinstance(mutations, list) else [],
        'interesting_fact': str(reply.get('interesting_fact') or ''),
    }
