"""
Error types for EBCC compression and decompression.
"""

__all__ = [
    "EBCCError",
    "InvalidInputError",
    "InvalidConfigError",
    "CompressionError",
    "DecompressionError",
    "ContextFragment",
    "ErrorContext",
    "ctx",
    "lookup_enum_or_raise",
]

from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import TypeVar

from typing_extensions import (
    Never,  # MSPV 3.11
    Self,  # MSPV 3.11
    override,  # MSPV 3.12
)

Ei = TypeVar("Ei", bound=Enum)
""" Any enum type (invariant). """


class ContextFragment(ABC):
    __slots__: tuple[str, ...] = ()

    @override
    @abstractmethod
    def __str__(self) -> str:
        pass

    @property
    def separator(self) -> str:
        return "."


class ErrorContext:
    """
    Path of [`ContextFragment`][ebcc.error.ContextFragment]s that locates
    where an [`EBCCError`][ebcc.error.EBCCError] occurred, e.g.
    `residual.error` or `data[17]`.
    """

    __slots__: tuple[str, ...] = ("_context",)
    _context: tuple[ContextFragment, ...]

    def __init__(self, *context: ContextFragment):
        self._context = context

    def __ror__(self, other: "EBCCError") -> "EBCCError":
        other._context = ErrorContext(*self._context, *other.context._context)
        return other

    @property
    def fragments(self) -> tuple[ContextFragment, ...]:
        return self._context

    @override
    def __str__(self) -> str:
        match self._context:
            case ():
                return ""
            case (c,):
                return str(c)
            case _:
                c, *cs = self._context
                acc = [str(c)]
                for c in cs:
                    acc.append(c.separator)
                    acc.append(str(c))
                return "".join(acc)


class ctx:
    __slots__: tuple[str, ...] = ()

    def __new__(cls) -> Self:
        raise TypeError(f"{cls} is a singleton")

    @contextmanager
    @staticmethod
    def fragment(fragment: ContextFragment):
        try:
            yield
        except EBCCError as err:
            raise err | ErrorContext(fragment)

    @staticmethod
    def parameter(name: str):
        return ctx.fragment(ParameterContextFragment(name))

    @staticmethod
    def index(index: int):
        return ctx.fragment(IndexContextFragment(index))


class IndexContextFragment(ContextFragment):
    __slots__: tuple[str, ...] = ("_index",)
    _index: int

    def __init__(self, index: int):
        self._index = index

    @property
    def index(self) -> int:
        return self._index

    @override
    def __str__(self) -> str:
        return f"[{self.index}]"

    @property
    @override
    def separator(self) -> str:
        return ""

    @override
    def __eq__(self, value: object, /) -> bool:
        return isinstance(value, IndexContextFragment) and value._index == self._index


class ParameterContextFragment(ContextFragment):
    __slots__: tuple[str, ...] = ("_parameter",)
    _parameter: str

    def __init__(self, parameter: str):
        self._parameter = parameter

    @property
    def parameter(self) -> str:
        return self._parameter

    @override
    def __str__(self) -> str:
        return self._parameter

    @override
    def __eq__(self, value: object, /) -> bool:
        return (
            isinstance(value, ParameterContextFragment)
            and value._parameter == self._parameter
        )


class EBCCError(Exception):
    """
    Base class of all errors that can occur during EBCC compression and
    decompression.

    None of the errors are retried by this package. They are raised before
    any foreign call is made if the request is invalid, or right after the
    foreign call if it signalled a failure.
    """

    # cannot use slots since the subclasses also inherit from builtin errors
    _context: ErrorContext
    kind: str = "EBCC error"

    @property
    def message(self) -> str:
        (message,) = self.args
        return message

    @property
    def context(self) -> ErrorContext:
        try:
            return self._context
        except AttributeError:
            context = ErrorContext()
            self._context = context
            return context

    @override
    def __str__(self) -> str:
        context_str = str(self.context)
        if context_str == "":
            return f"{self.kind}: {self.message}"
        return f"{self.kind}: {context_str}: {self.message}"


class InvalidInputError(EBCCError, ValueError):
    """
    The input data (or the output array for decoding) is malformed, too large,
    contains non-finite values, or does not match the decompressed shape.
    """

    kind = "Invalid input data"


class InvalidConfigError(EBCCError, ValueError):
    """
    The [`EBCCConfig`][ebcc.config.EBCCConfig] violates one of its invariants.
    """

    kind = "Invalid configuration"


class CompressionError(EBCCError, RuntimeError):
    """
    The foreign `ebcc_encode` routine signalled a failure.
    """

    kind = "Compression failed"


class DecompressionError(EBCCError, RuntimeError):
    """
    The foreign `ebcc_decode` routine signalled a failure.
    """

    kind = "Decompression failed"


def lookup_enum_or_raise(
    enum: type[Ei], name: str, error: type[EBCCError] = InvalidConfigError
) -> Ei | Never:
    if name in enum.__members__:
        return enum.__members__[name]

    raise error(
        f"unknown {enum.__name__} {name!r}, use one of "
        + f"{', '.join(repr(m) for m in enum.__members__)}"
    )
