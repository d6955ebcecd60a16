"""
Application error taxonomy.

Every error carries a client-safe `message`; `main.py` renders them as
`{"message": ...}` with the matching HTTP status.
"""

from __future__ import annotations


class AppError(RuntimeError):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InternalError(AppError):
    status_code = 500
