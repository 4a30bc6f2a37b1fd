"""Central task service API client."""

from .client import ApiAuthError, ApiClient, ApiError, ApiNotFoundError, ApiRequestError

__all__ = [
    "ApiAuthError",
    "ApiClient",
    "ApiError",
    "ApiNotFoundError",
    "ApiRequestError",
]
