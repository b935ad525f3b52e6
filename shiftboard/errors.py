from __future__ import annotations

from typing import Any


class ScheduleError(Exception):
    """Base class for every failure the service reports to callers.

    Each subclass carries a stable machine-readable ``code`` and the HTTP status
    the API layer answers with. ``redirect`` is a navigation hint for states the
    UI resolves by routing (onboarding, pending approval).
    """

    code = "INTERNAL"
    status_code = 500

    def __init__(self, message: str, redirect: str | None = None, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.redirect = redirect
        self.details = details

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.redirect:
            body["redirect"] = self.redirect
        if self.details is not None:
            body["details"] = self.details
        return body


class Unauthorized(ScheduleError):
    code = "UNAUTHORIZED"
    status_code = 401


class Incomplete(ScheduleError):
    code = "PROFILE_INCOMPLETE"
    status_code = 403


class Forbidden(ScheduleError):
    code = "FORBIDDEN"
    status_code = 403


class NotFound(ScheduleError):
    code = "NOT_FOUND"
    status_code = 404


class Conflict(ScheduleError):
    code = "CONFLICT"
    status_code = 409


class InvalidInput(ScheduleError):
    code = "INVALID_INPUT"
    status_code = 400


class ProvisioningFailed(ScheduleError):
    code = "PROVISIONING_FAILED"
    status_code = 500


class Internal(ScheduleError):
    code = "INTERNAL"
    status_code = 500


class AccountConflict(Exception):
    """Raised by the account store when an insert hits the primary-key constraint."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} already exists")
        self.account_id = account_id
