"""Typed errors raised by the engine and mapped to HTTP responses by the API."""
from __future__ import annotations


class EngineError(Exception):
    """Base class for engine failures that carry a machine-readable code."""

    status_code = 500

    def __init__(self, message: str, code: str = "INTERNAL_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class NotFoundError(EngineError):
    status_code = 404


class PreconditionFailedError(EngineError):
    status_code = 400


class ForbiddenError(EngineError):
    status_code = 403


class InternalError(EngineError):
    status_code = 500
