"""HTTP errors for the assistant API."""
from rest_framework.exceptions import APIException


class InferenceUnavailable(APIException):
    """The inference endpoint could not be reached or answered nonsense."""
    status_code = 502
    default_detail = "Couldn't reach the AI model right now. Please try again."
    default_code = 'inference_unavailable'


class InferenceOverloaded(APIException):
    """The inference endpoint is overloaded."""
    status_code = 503
    default_detail = 'The AI model is currently overloaded. Please try again in a moment.'
    default_code = 'inference_overloaded'


class InvalidPhoto(APIException):
    status_code = 400
    default_detail = 'Photo must be a base64 image data URI.'
    default_code = 'invalid_photo'
