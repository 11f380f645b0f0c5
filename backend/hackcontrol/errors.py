from __future__ import annotations


class ServiceError(Exception):
    """Base for failures surfaced to the caller with a kind and an HTTP status."""
    status_code: int = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    @property
    def kind(self) -> str:
        return type(self).__name__


class NotFound(ServiceError):
    status_code = 404


class Forbidden(ServiceError):
    status_code = 403


class Conflict(ServiceError):
    status_code = 409


class Locked(ServiceError):
    status_code = 423


class ValidationFailed(ServiceError):
    status_code = 422
