"""
Safe wrapper functions for EBCC compression and decompression.
"""

__all__ = ["ebcc_encode", "ebcc_decode_into", "ebcc_decode"]

import ctypes
import math
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import numpy as np
from typing_extensions import Buffer  # MSPV 3.12

from ._ffi import (
    CodecConfig,
    ForeignLibrary,
    ResidualCode,
    c_float_p,
    c_uint8_p,
    default_library,
)
from .config import (
    AbsoluteError,
    EBCCConfig,
    Jpeg2000Only,
    RelativeError,
    ResidualType,
)
from .error import CompressionError, DecompressionError, InvalidInputError
from .typing import Grid
from .validate import (
    validate_decode_input,
    validate_decode_output,
    validate_encode_input,
    validate_shape,
)

_RESIDUAL_CR_PLACEHOLDER: float = 1.0
""" Value for the `residual_cr` field, which EBCC no longer reads. """


def ebcc_encode(
    data: Grid, config: EBCCConfig, *, library: None | ForeignLibrary = None
) -> bytes:
    """
    Encode a 3D data array using EBCC compression.

    The `data` is copied before it is passed to EBCC, which may modify its
    input, so the caller's `data` is never modified.

    Parameters
    ----------
    data : Grid
        3D [`float32`][numpy.float32] input data array of shape
        `(frames, height, width)`.
    config : EBCCConfig
        EBCC configuration.
    library : None | ForeignLibrary
        The foreign EBCC interface to use. By default, the native EBCC library
        is loaded, see [`load_library`][ebcc._ffi.load_library].

    Returns
    -------
    compressed : bytes
        The compressed data bytes.

    Raises
    ------
    InvalidConfigError
        if [`config.validate()`][ebcc.config.EBCCConfig.validate] fails.
    InvalidInputError
        if the `data` is not a 3D [`float32`][numpy.float32] array.
    InvalidInputError
        if the `data` has any zero-size dimension.
    InvalidInputError
        if the size of the `data` overflows or would not fit into memory.
    InvalidInputError
        if the last two dimensions of the `data` are not both at least of size
        32.
    InvalidInputError
        if the `data` contains any non-finite (infinite or NaN) values.
    CompressionError
        if compression with EBCC fails.

    Examples
    --------
    ```py
    import numpy as np
    from ebcc import EBCCConfig, ebcc_encode

    # 2D ERA5-like data: 721x1440
    data = np.ones((1, 721, 1440), dtype=np.float32)
    config = EBCCConfig.max_absolute_error_bounded(30.0, 0.01)

    compressed = ebcc_encode(data, config)
    print(f"Compressed {data.nbytes} bytes to {len(compressed)} bytes")
    ```
    """

    config.validate()
    validate_encode_input(data)

    library = default_library() if library is None else library

    residual_code, error = _residual_as_foreign(config.residual)
    frames, height, width = data.shape

    ffi_config = CodecConfig(
        dims=(ctypes.c_size_t * 3)(frames, height, width),
        base_cr=config.base_cr,
        residual_compression_type=residual_code,
        residual_cr=_RESIDUAL_CR_PLACEHOLDER,
        error=error,
    )

    # EBCC may modify its input
    data_copy = np.array(data, dtype=np.float32, order="C", copy=True)

    out_buffer = c_uint8_p()
    compressed_size = library.ebcc_encode(
        data_copy.ctypes.data_as(c_float_p),
        ctypes.pointer(ffi_config),
        ctypes.pointer(out_buffer),
    )

    with _foreign_buffer(library, out_buffer):
        if compressed_size == 0 or not out_buffer:
            raise CompressionError(
                "ebcc_encode C function returned null or zero size"
            )

        # copy out before the buffer is freed
        return ctypes.string_at(out_buffer, compressed_size)


def ebcc_decode_into(
    compressed: Buffer,
    decompressed: Grid,
    *,
    library: None | ForeignLibrary = None,
) -> None:
    """
    Decode into a 3D data array using EBCC decompression.

    The shape of `decompressed` is the expected shape of the decompressed
    data. If decompression fails or decompresses to a different number of
    elements, `decompressed` is left unchanged.

    Parameters
    ----------
    compressed : Buffer
        Compressed data bytes produced by
        [`ebcc_encode`][ebcc.codec.ebcc_encode].
    decompressed : Grid
        Writeable 3D [`float32`][numpy.float32] output data array.
    library : None | ForeignLibrary
        The foreign EBCC interface to use. By default, the native EBCC library
        is loaded, see [`load_library`][ebcc._ffi.load_library].

    Raises
    ------
    InvalidInputError
        if the `compressed` data is empty.
    InvalidInputError
        if `decompressed` is not a writeable 3D [`float32`][numpy.float32]
        array.
    DecompressionError
        if decompression with EBCC fails.
    InvalidInputError
        if the decompressed data does not fit into `decompressed`.

    Examples
    --------
    ```py
    import numpy as np
    from ebcc import EBCCConfig, ebcc_decode_into, ebcc_encode

    data = np.ones((1, 32, 32), dtype=np.float32)
    compressed = ebcc_encode(data, EBCCConfig())

    decompressed = np.zeros_like(data)
    ebcc_decode_into(compressed, decompressed)
    ```
    """

    validate_decode_input(compressed)
    validate_decode_output(decompressed)

    with _foreign_decode(compressed, library) as decompressed_flat:
        _check_decompressed_size(decompressed_flat, decompressed.shape)

        # copy out before the buffer is freed
        np.copyto(
            decompressed,
            decompressed_flat.reshape(decompressed.shape),
            casting="no",
        )


def ebcc_decode(
    compressed: Buffer,
    shape: Sequence[int],
    *,
    library: None | ForeignLibrary = None,
) -> Grid:
    """
    Decode a 3D data array of the expected `shape` using EBCC decompression.

    The output array is only allocated after EBCC has decompressed the data
    to exactly as many elements as the `shape` declares.

    Parameters
    ----------
    compressed : Buffer
        Compressed data bytes produced by
        [`ebcc_encode`][ebcc.codec.ebcc_encode].
    shape : Sequence[int]
        The expected `(frames, height, width)` shape of the decompressed data.
    library : None | ForeignLibrary
        The foreign EBCC interface to use.

    Returns
    -------
    decompressed : Grid
        The decompressed 3D [`float32`][numpy.float32] data array.

    Raises
    ------
    InvalidInputError
        if the `shape` is invalid, see
        [`validate_shape`][ebcc.validate.validate_shape].
    InvalidInputError
        if the `compressed` data is empty.
    DecompressionError
        if decompression with EBCC fails.
    InvalidInputError
        if the decompressed data does not have the expected `shape`.
    """

    validate_shape(shape)
    validate_decode_input(compressed)

    shape = tuple(int(s) for s in shape)

    with _foreign_decode(compressed, library) as decompressed_flat:
        _check_decompressed_size(decompressed_flat, shape)

        # copy out before the buffer is freed
        return decompressed_flat.reshape(shape).copy()


def _check_decompressed_size(
    decompressed_flat: np.ndarray, shape: tuple[int, ...]
) -> None:
    if decompressed_flat.size != math.prod(shape):
        raise InvalidInputError(
            f"decompressed data should be of shape {shape} but "
            + f"decompressed to {decompressed_flat.size} elements"
        )


def _residual_as_foreign(residual: ResidualType) -> tuple[ResidualCode, float]:
    match residual:
        case Jpeg2000Only():
            return (ResidualCode.NONE, 0.0)
        case AbsoluteError(error):
            return (ResidualCode.MAX_ERROR, error)
        case RelativeError(error):
            return (ResidualCode.RELATIVE_ERROR, error)


@contextmanager
def _foreign_buffer(library: ForeignLibrary, buffer: ctypes._Pointer) -> Iterator[None]:
    # the foreign buffer is released exactly once on every exit path, but
    #  only if the foreign call allocated one
    try:
        yield
    finally:
        if buffer:
            library.free_buffer(ctypes.cast(buffer, ctypes.c_void_p))


@contextmanager
def _foreign_decode(
    compressed: Buffer, library: None | ForeignLibrary
) -> Iterator[np.ndarray]:
    # yields a flat view of the foreign output buffer, which is only valid
    #  inside the with block
    library = default_library() if library is None else library

    # EBCC may modify its input, and non-contiguous buffers are gathered
    compressed_copy = np.frombuffer(
        bytearray(memoryview(compressed).tobytes()), dtype=np.uint8
    )

    out_buffer = c_float_p()
    decompressed_size = library.ebcc_decode(
        compressed_copy.ctypes.data_as(c_uint8_p),
        compressed_copy.size,
        ctypes.pointer(out_buffer),
    )

    with _foreign_buffer(library, out_buffer):
        if decompressed_size == 0 or not out_buffer:
            raise DecompressionError(
                "ebcc_decode C function returned null or zero size"
            )

        yield np.ctypeslib.as_array(out_buffer, shape=(decompressed_size,))
