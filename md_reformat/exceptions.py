"""Package-specific exception types."""

from __future__ import annotations


class ReformatError(ValueError):
    """Base class for reformatting errors.

    Represents internal-consistency failures detected while re-emitting
    Markdown. These are never raised for merely malformed Markdown input.
    """


class ParserContractError(ReformatError):
    """Raised when an event arrives where no emitter transition exists.

    Args:
        event: The offending parser event.
        context: Name of the construct being emitted when it arrived.
    """

    def __init__(self, event: object, context: str):
        self.event = event
        self.context = context
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return f"Parser contract violated: unexpected {self.event!r} inside {self.context}"


class FrameMismatchError(ReformatError):
    """Raised when the indent stack is left in a different state than entered.

    Args:
        expected: Follow prefixes captured when the frame was entered.
        actual: Follow prefixes found when the frame was left.
    """

    def __init__(self, expected: list[str], actual: list[str]):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Indent frame mismatch: entered with {expected!r}, left with {actual!r}")
