"""HTTP interface for checkout."""

from api.base import (
    APIError,
    APIMeta,
    APIResponse,
    success_response,
    error_response,
    ErrorCodes,
)
from api.app import create_app, create_default_app, create_services
