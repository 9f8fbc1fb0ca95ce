"""Find colour mutations and their inheritance in an uploaded document."""
import logging
from typing import Any, Dict, Optional

from apps.aviary.choices import Inheritance

from .exceptions import AssistantServiceError
from .extraction import extract_document_text
from .inference import InferenceClient, get_inference_client
from .prompts import MUTATION_ANALYSIS_PROMPT

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT_MESSAGE = 'The document appears to be empty or contains no readable text.'


def analyze_mutations(*, document_url: str, client: Optional[InferenceClient] = None) -> Dict[str, Any]:
    """
    Extract the document's text and ask the model for mutations in it.

    Returns ``{'mutations': [{'name', 'inheritance'}]}``, or the same with an
    empty list and an ``'error'`` message when anything fails. Mutations with
    an inheritance pattern outside :class:`Inheritance` are dropped.
    """
    try:
        text = extract_document_text(document_url=document_url)
        if not text.strip():
            return {'mutations': [], 'error': EMPTY_DOCUMENT_MESSAGE}
        reply = get_inference_client(client).complete_json(
            MUTATION_ANALYSIS_PROMPT,
            f'Document Text:\n---\n{text}\n---',
        )
    except AssistantServiceError as e:
        logger.error('Mutation analysis failed for %s: %s', document_url, e)
        return {'mutations': [], 'error': f'An error occurred during document analysis: {e}'}

    raw = reply.get('mutations')
    mutations = []
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get('name') or '').strip()
        inheritance = entry.get('inheritance')
        if name and inheritance in Inheritance.values:
            mutations.append({'name': name, 'inheritance': inheritance})
        else:
            logger.info('Dropping mutation with unknown inheritance: %r', entry)
    return {'mutations': mutations}
