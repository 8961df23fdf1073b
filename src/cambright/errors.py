"""
cambright.errors

Domain error types raised by services.

Responsibilities:
- Give services a small vocabulary of failures that the API layer maps to HTTP
  status codes (see `cambright.api.errors`).
"""

from __future__ import annotations


class DomainError(Exception):
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(DomainError):
    status_code = 400


class UnauthorizedError(DomainError):
    status_code = 401


class PermissionDeniedError(DomainError):
    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    status_code = 409


class UpstreamError(DomainError):
    # Upstream failures surface to callers as a plain 500.
    status_code = 500


# --- Module Notes -----------------------------------------------------------
# Routers may still raise HTTPException directly for request-shape problems.
