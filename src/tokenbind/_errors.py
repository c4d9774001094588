from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Sequence


class Code(str, Enum):
    NOT_FOUND = "NotFound"
    CIRCULAR_DEPENDENCY_DETECTED = "CircularDependencyDetected"


def describe_token(token: Any) -> str:
    """Render a token for error messages: strings quoted, classes and functions by name."""
    if isinstance(token, str):
        return f'"{token}"'
    name = getattr(token, "__qualname__", None) or getattr(token, "__name__", None)
    return f'"{name}"' if isinstance(name, str) else f'"{token}"'


class ResolutionError(RuntimeError):
    """Base class for failures raised while resolving a token.

    `code` identifies the failure kind and `name` mirrors its value, so callers
    can branch on either without matching message text.
    """

    code: Code

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def name(self) -> str:
        return self.code.value

    def __str__(self) -> str:
        return self.message


class NotFoundError(ResolutionError, KeyError):
    code = Code.NOT_FOUND

    def __init__(self, token: Any) -> None:
        super().__init__(f"Attempted to resolve unregistered dependency token: {describe_token(token)}.")
        self.token = token


class CircularDependencyError(ResolutionError):
    code = Code.CIRCULAR_DEPENDENCY_DETECTED

    def __init__(self, token: Any, path: Sequence[Any]) -> None:
        trace = " ➡️ ".join(describe_token(t) for t in path)
        super().__init__(f"Attempted to resolve circular dependency: {trace} 🔄 {describe_token(token)}.")
        self.token = token
        self.path = tuple(path)

    @property
    def cycle(self) -> tuple[Any, ...]:
        """The tokens forming the loop, starting at the first visit of the repeated token."""
        return self.path[self.path.index(self.token) :]
