"""
Chow Service - Result type and error taxonomy

Repository operations never raise across their public boundary. They return
either ``Ok(value)`` or ``Err([ErrorDetail, ...])``; the API layer is the only
place that turns an ``Err`` into an HTTP status.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    BAD_REQ = "BAD_REQ"
    DB = "DB"
    INTERNAL = "INTERNAL"


@dataclass(frozen=True)
class ErrorDetail:
    text: str
    code: ErrorCode | None = None
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        prefix = f"{self.code.value}: " if self.code else ""
        return f"{prefix}{self.text}"

    def to_dict(self) -> dict[str, Any]:
        options = dict(self.options)
        if self.code:
            options["code"] = self.code.value
        return {"message": self.message, "options": options}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    errors: list[ErrorDetail]


Result = Union[Ok[T], Err]


def err(code: ErrorCode, text: str, **options: Any) -> Err:
    """Single-error shortcut."""
    return Err([ErrorDetail(text, code, options)])


class AppErrorsException(Exception):
    """Carries an error list out of a request handler."""

    def __init__(self, errors: list[ErrorDetail]):
        super().__init__("; ".join(e.message for e in errors))
        self.errors = errors


def unwrap(result: "Result[T]") -> T:
    """Return the value of an ``Ok`` or raise ``AppErrorsException`` for an ``Err``."""
    if isinstance(result, Err):
        raise AppErrorsException(result.errors)
    return result.value
