from __future__ import annotations

from typing import Sequence

__all__ = [
    'LayoutError',
    'OffsetMismatchError',
    'AlignmentError',
    'BitfieldWidthMismatchError',
    'UnusedMetadataError',
    'NestedStructUnsupportedError',
    'UnionMemberConstraintError',
    'EnumRangeError',
    'DuplicateNameError',
    'InvalidNameError',
    'AbbreviationExhaustedError',
    'BitfieldTooWideError',
    'StraddleError',
    'UnalignedBlobWidthError',
    'UnsupportedWordWidthError',
    'UnsupportedRootError',
    'EmptyFieldError',
    'SchemaViolationError',
]


class LayoutError(ValueError):
    """Base class for layout errors.

    Every layout error is fatal for the model being processed. ``fqn`` names
    the offending node, or its closest named ancestor when the node itself has
    not been named yet.
    """

    def __init__(self, fqn: str, cause: str) -> None:
        super().__init__(f'{fqn}: {cause}' if fqn else cause)
        self.fqn = fqn
        self.cause = cause


class OffsetMismatchError(LayoutError):
    """Raised when an explicit offset does not match the computed one."""
    pass


class AlignmentError(LayoutError):
    """Raised when a word is not naturally aligned."""
    pass


class BitfieldWidthMismatchError(LayoutError):
    """Raised when bitfield item widths do not add up to the bitfield width."""

    def __init__(self, fqn: str, cause: str, shortfall: int = 0) -> None:
        super().__init__(fqn, cause)
        self.shortfall = shortfall


class UnusedMetadataError(LayoutError):
    """Raised when an anonymous field carries enum/typedef/signed."""
    pass


class NestedStructUnsupportedError(LayoutError):
    pass


class UnionMemberConstraintError(LayoutError):
    pass


class EnumRangeError(LayoutError):
    pass


class DuplicateNameError(LayoutError):
    """Raised when two nodes or enum constants resolve to the same name."""
    pass


class InvalidNameError(LayoutError):
    pass


class AbbreviationExhaustedError(LayoutError):
    """Raised when no short label can be found for a field."""
    pass


class BitfieldTooWideError(LayoutError):
    pass


class StraddleError(LayoutError):
    """Raised when a field crosses a 32 bit boundary in the diagram."""
    pass


class UnalignedBlobWidthError(LayoutError):
    pass


class UnsupportedWordWidthError(LayoutError):
    pass


class UnsupportedRootError(LayoutError):
    pass


class EmptyFieldError(LayoutError):
    """Raised when an opaque field or a union occupies no bytes."""
    pass


class SchemaViolationError(ValueError):
    """Raised when a model document does not match the model schema."""

    def __init__(self, messages: Sequence[str]) -> None:
        self.messages = list(messages)
        super().__init__('Model does not match schema:\n' + '\n'.join(f'  {m}' for m in self.messages))
