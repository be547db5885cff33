from __future__ import annotations

from collections.abc import Sequence


class RecordMatchError(Exception):
    """Base class for configuration and input errors raised by the engines.

    These are deterministic: retrying the same call with the same input fails the
    same way. ``description`` carries a longer, user-facing explanation.
    """

    def __init__(self, message: str, description: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.description = description


class EmptyKeySpec(RecordMatchError):
    def __init__(self, message: str = "No fields specified to compare on") -> None:
        super().__init__(message, description="Add at least one field to match or compare on")


class BlankFieldName(RecordMatchError):
    def __init__(self) -> None:
        super().__init__("Name of field to compare is blank")


class MissingKeyField(RecordMatchError):
    """A matcher input record lacks one of the fields it is joined on."""

    def __init__(self, side: str, path: str, index: int) -> None:
        super().__init__(
            f"Field '{path}' is missing from item {index} of input {side.upper()}",
            description="Every item must contain the fields being matched on",
        )
        self.side = side
        self.path = path
        self.index = index


class MissingField(RecordMatchError):
    def __init__(self, path: str, hint: str | None = None) -> None:
        super().__init__(f"'{path}' field is missing from some input items", description=hint)
        self.path = path
        self.hint = hint


class InconsistentFieldType(RecordMatchError):
    def __init__(self, path: str, kinds: Sequence[str] = ()) -> None:
        super().__init__(
            f"'{path}' isn't always the same type",
            description="The type of this field varies between items"
            + (f" ({', '.join(kinds)})" if kinds else ""),
        )
        self.path = path
        self.kinds = tuple(kinds)
