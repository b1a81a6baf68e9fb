"""Error taxonomy with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum


class ErrorCode(str, Enum):
    MALFORMED_INPUT = "E_MALFORMED_INPUT"
    UNKNOWN_SOURCE_KIND = "E_UNKNOWN_SOURCE_KIND"
    UNRESOLVABLE_FOLLOWS = "E_UNRESOLVABLE_FOLLOWS"
    OUTPUT = "E_OUTPUT"


class LockfollowError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for k, v in self.context.items():
            if v:
                parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class MalformedInput(LockfollowError):
    """Structurally invalid lock document."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.MALFORMED_INPUT, hint=hint, context=context)


class UnknownSourceKind(LockfollowError):
    """A `locked.type` discriminant that has no registered source kind."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.UNKNOWN_SOURCE_KIND, hint=hint, context=context)


class UnresolvableFollows(MalformedInput):
    """A follows path that cannot be walked to a node."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        LockfollowError.__init__(self, message, code=ErrorCode.UNRESOLVABLE_FOLLOWS, hint=hint, context=context)


class OutputError(LockfollowError):
    """Output that cannot be written, or would replace a file without --force."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.OUTPUT, hint=hint, context=context)


__all__ = [
    "ErrorCode",
    "LockfollowError",
    "MalformedInput",
    "OutputError",
    "UnknownSourceKind",
    "UnresolvableFollows",
]
