"""
HTTP errors for the aviary API.

Service-layer errors live in ``services/exceptions.py``; these map them to
responses.
"""
from rest_framework.exceptions import APIException


class ItemNotFound(APIException):
    """No item with this id in the user's aviary."""
    status_code = 404
    default_detail = 'Item not found.'
    default_code = 'item_not_found'


class ItemValidationFailed(APIException):
    """The item or the change was rejected before any state change."""
    status_code = 400
    default_detail = 'Item data is invalid.'
    default_code = 'item_invalid'


class RemoteStoreUnavailable(APIException):
    """The change was reverted because it could not be persisted."""
    status_code = 502
    default_detail = 'The change could not be saved and was reverted.'
    default_code = 'remote_store_unavailable'
