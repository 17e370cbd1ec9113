"""Domain errors."""

from __future__ import annotations

from typing import Final

PUBLISHABLE_MESSAGE: Final[str] = (
    "Sorry. Illegal internal configuration. Please contact your system administrator."
)


class PublishableError(RuntimeError):
    """Error whose message is safe to show to end users.

    The underlying cause is kept for maintainers but never leaks into ``str()``.
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(PUBLISHABLE_MESSAGE)
        self.cause = cause

    def __str__(self) -> str:
        return PUBLISHABLE_MESSAGE


class UnresolvedFieldError(LookupError):
    """Raised when a condition names a field the resolver does not know."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Unresolved field name: {field!r}")
        self.field = field
