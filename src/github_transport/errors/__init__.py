"""Error handling for GitHub API responses."""

from github_transport.errors.exceptions import (
    APIError,
    ClientError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnauthorizedError,
)
from github_transport.errors.handler import raise_for_status

__all__ = [
    "APIError",
    "ClientError",
    "ForbiddenError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "UnauthorizedError",
    "raise_for_status",
]
