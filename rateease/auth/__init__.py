"""Login session and role-based page access."""

from rateease.auth.service import (
    AuthenticationError,
    AuthService,
    PermissionDeniedError,
)

__all__ = ["AuthenticationError", "AuthService", "PermissionDeniedError"]
