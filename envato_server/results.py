from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


class ErrorKind(str, Enum):
    EMPTY_CODE = "empty_code"
    INVALID_CODE = "invalid_code"
    TRANSPORT_FAILURE = "transport_failure"
    CODE_ALREADY_REGISTERED = "code_already_registered"

    MISSING_USERNAME = "missing_username"
    INVALID_EMAIL = "invalid_email"
    MISSING_PASSWORD = "missing_password"
    USERNAME_TAKEN = "username_taken"
    EMAIL_TAKEN = "email_taken"
    BAD_CREDENTIALS = "bad_credentials"

    MISSING_THEME = "missing_theme"
    MISSING_TITLE = "missing_title"
    MISSING_MESSAGE = "missing_message"
    MAILBOX_NOT_CONFIGURED = "mailbox_not_configured"
    MAIL_FAILED = "mail_failed"


@dataclass(frozen=True)
class Result:
    """Outcome of an operation: a value on success, one or more error kinds otherwise."""

    ok: bool
    value: Any = None
    errors: Tuple[ErrorKind, ...] = ()

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(True, value)

    @classmethod
    def failure(cls, *errors: ErrorKind) -> "Result":
        if not errors:
            raise ValueError("a failed result needs at least one error")
        return cls(False, None, tuple(errors))

    @property
    def error(self) -> Optional[ErrorKind]:
        return self.errors[0] if self.errors else None

    def __bool__(self) -> bool:
        return self.ok
