"""
Validation of the data that is passed to and received from EBCC.

All checks run before any data crosses the foreign boundary.
"""

__all__ = [
    "MIN_BLOCK_SIZE",
    "validate_shape",
    "validate_encode_input",
    "validate_decode_input",
    "validate_decode_output",
]

from collections.abc import Sequence

import numpy as np
from typing_extensions import Buffer  # MSPV 3.12

from .error import InvalidInputError, ctx

MIN_BLOCK_SIZE: int = 32
""" EBCC requires the last two dimensions to be at least 32x32. """

_ITEMSIZE: int = np.dtype(np.float32).itemsize


def validate_shape(shape: Sequence[int]) -> None:
    """
    Check that `shape` is a valid `(frames, height, width)` shape for EBCC.

    Parameters
    ----------
    shape : Sequence[int]
        The shape of the 3D data.

    Raises
    ------
    InvalidInputError
        if the shape is not 3D or has any zero-size dimension.
    InvalidInputError
        if the size of the data overflows or would not fit into memory.
    InvalidInputError
        if the last two dimensions are not both at least of size 32.
    """

    if len(shape) != 3:
        raise InvalidInputError(
            f"data must be 3D (frames, height, width), got {len(shape)}D shape "
            + f"{tuple(shape)}"
        )

    if any(d <= 0 for d in shape):
        raise InvalidInputError(f"all dimensions must be > 0, got {tuple(shape)}")

    # Python integers do not overflow, so compare against the largest
    #  addressable byte size instead
    total_elements = 1
    for d in shape:
        total_elements *= d

    if total_elements > np.iinfo(np.intp).max:
        raise InvalidInputError(f"dimension overflow for shape {tuple(shape)}")

    if total_elements > (np.iinfo(np.intp).max // _ITEMSIZE):
        raise InvalidInputError(f"data too large for shape {tuple(shape)}")

    _frames, height, width = shape
    if height < MIN_BLOCK_SIZE or width < MIN_BLOCK_SIZE:
        raise InvalidInputError(
            "EBCC requires last two dimensions to be at least "
            + f"{MIN_BLOCK_SIZE}x{MIN_BLOCK_SIZE}, got {height}x{width}"
        )


def validate_encode_input(data: np.ndarray) -> None:
    """
    Check that `data` can be compressed with EBCC.

    The finiteness check scans all elements and reports the first
    non-finite one.

    Parameters
    ----------
    data : np.ndarray
        The 3D [`float32`][numpy.float32] data to be compressed.

    Raises
    ------
    InvalidInputError
        if `data` is not a 3D [`float32`][numpy.float32] array.
    InvalidInputError
        if the shape of `data` is invalid, see
        [`validate_shape`][ebcc.validate.validate_shape].
    InvalidInputError
        if `data` contains any non-finite (infinite or NaN) values.
    """

    with ctx.parameter("data"):
        if not isinstance(data, np.ndarray):
            raise InvalidInputError(
                f"data must be a numpy array, got {type(data).__name__}"
            )

        if data.dtype != np.float32:
            raise InvalidInputError(
                f"data must be of dtype float32, got {data.dtype.name}"
            )

        validate_shape(data.shape)

        finite = np.isfinite(data).ravel(order="C")
        if not np.all(finite):
            i = int(np.argmin(finite))
            value = data.ravel(order="C")[i]
            with ctx.index(i):
                raise InvalidInputError(f"non-finite value {value}")


def validate_decode_input(compressed: Buffer) -> None:
    """
    Check that the `compressed` data can be passed to EBCC for decompression.

    Raises
    ------
    InvalidInputError
        if the `compressed` data is empty.
    """

    if memoryview(compressed).nbytes == 0:
        raise InvalidInputError("compressed data is empty")


def validate_decode_output(out: np.ndarray) -> None:
    """
    Check that `out` can receive decompressed data.

    Raises
    ------
    InvalidInputError
        if `out` is not a writeable 3D [`float32`][numpy.float32] array.
    """

    with ctx.parameter("out"):
        if not isinstance(out, np.ndarray):
            raise InvalidInputError(
                f"output must be a numpy array, got {type(out).__name__}"
            )

        if out.dtype != np.float32:
            raise InvalidInputError(
                f"output must be of dtype float32, got {out.dtype.name}"
            )

        if out.ndim != 3:
            raise InvalidInputError(
                f"output must be 3D (frames, height, width), got {out.ndim}D "
                + f"shape {out.shape}"
            )

        if not out.flags.writeable:
            raise InvalidInputError("output must be writeable")
