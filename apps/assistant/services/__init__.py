"""Services for the AI assistant."""

from .exceptions import (
    AssistantServiceError,
    InferenceError,
    InferenceOverloadedError,
    ExtractionError,
    InvalidImageError,
)
from .inference import InferenceClient, get_inference_client
from .extraction import extract_document_text
from .assistant import (
    ACTIONS,
    ReplayPlan,
    ask_assistant,
    describe_actions,
    plan_replay,
    confirm_actions,
)
from .mutation_analysis import analyze_mutations
from .identification import identify_bird

__all__ = [
    # Exceptions
    'AssistantServiceError',
    'InferenceError',
    'InferenceOverloadedError',
    'ExtractionError',
    'InvalidImageError',
    # Inference
    'InferenceClient',
    'get_inference_client',
    'extract_document_text',
    # Assistant
    'ACTIONS',
    'ReplayPlan',
    'ask_assistant',
    'describe_actions',
    'plan_replay',
    'confirm_actions',
    # Analysis
    'analyze_mutations',
    'identify_bird',
]
