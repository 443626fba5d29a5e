"""
# EBCC compression for `numcodecs`

This package provides the [`EBCCCodec`][numcodecs_ebcc.EBCCCodec], a
[`numcodecs.abc.Codec`][numcodecs.abc.Codec] for the EBCC error-bounded lossy
compressor, so that EBCC can be used e.g. with `zarr` or inside codec stacks.

## Example

```py
import numpy as np
from numcodecs_ebcc import EBCCCodec

codec = EBCCCodec(base_cr=15.0, residual="absolute_error", error=0.1)

# float32 data, whose last two dimensions are at least 32x32
data = np.linspace(-10, 10, 64 * 64, dtype=np.float32).reshape(64, 64)

encoded = codec.encode(data)
decoded = codec.decode(encoded)

assert np.all(np.abs(data - decoded) <= 0.1)
```
"""

__all__ = ["EBCCCodec"]

from io import BytesIO

import numcodecs
import numcodecs.compat
import numcodecs.registry
import numpy as np
import varint
from ebcc._ffi import ForeignLibrary
from ebcc.codec import ebcc_decode, ebcc_encode
from ebcc.config import EBCCConfig, ResidualKind
from ebcc.error import InvalidInputError
from ebcc.validate import validate_shape
from numcodecs.abc import Codec
from typing_extensions import (
    Buffer,  # MSPV 3.12
    Self,  # MSPV 3.11
)


class EBCCCodec(Codec):
    """
    Codec providing compression using EBCC.

    EBCC compresses 3D [`float32`][numpy.float32] data of shape
    `(frames, height, width)`. Data with more than three dimensions is
    compressed with all leading dimensions flattened into the `frames`
    dimension, 2D data is compressed as a single frame. The last two
    dimensions must be at least of size 32.

    Parameters
    ----------
    base_cr : float
        Base compression ratio for the JPEG2000 layer.
    residual : str
        Type of residual compression to apply, one of `"jpeg2000_only"`,
        `"absolute_error"`, or `"relative_error"`.
    error : None | float
        The error bound for the `"absolute_error"` and `"relative_error"`
        residual compression. Must be [`None`][None] for `"jpeg2000_only"`.
    library : None | ForeignLibrary
        The foreign EBCC interface to use. By default, the native EBCC library
        is loaded. The library is not part of the codec configuration.
    """

    __slots__ = ("_config", "_library")
    _config: EBCCConfig
    _library: None | ForeignLibrary

    codec_id: str = "ebcc"  # type: ignore

    def __init__(
        self,
        *,
        base_cr: float = 10.0,
        residual: str = ResidualKind.jpeg2000_only.name,
        error: None | float = None,
        library: None | ForeignLibrary = None,
    ) -> None:
        config = dict(base_cr=base_cr, residual=residual)
        if error is not None:
            config["error"] = error

        self._config = EBCCConfig.from_config(config)
        self._config.validate()

        self._library = library

    @property
    def config(self) -> EBCCConfig:
        """
        The EBCC configuration of this codec.
        """

        return self._config

    def encode(self, buf: Buffer) -> bytes:
        """Encode the data in `buf`.

        The encoded data is defined by the following format:

        ```
        ULEB128(ndim), ULEB128(shape[0]), ..., ULEB128(shape[ndim-1]), ebcc_bytes
        ```

        where

        - `ULEB128` refers to the
          [unsigned LEB128](https://en.wikipedia.org/wiki/LEB128#Unsigned_LEB128)
          (little endian base 128) variable length encoding for unsigned
          integers
        - `ebcc_bytes` refers to the bytes produced by
          [`ebcc_encode`][ebcc.codec.ebcc_encode]

        Parameters
        ----------
        buf : Buffer
            Data to be encoded. May be any object supporting the new-style
            buffer protocol.

        Returns
        -------
        enc : bytes
            Encoded data as a bytestring.
        """

        data = (
            buf if isinstance(buf, np.ndarray) else numcodecs.compat.ensure_ndarray(buf)
        )

        if data.dtype != np.float32:
            raise InvalidInputError(
                f"can only encode arrays of dtype float32, got {data.dtype.name}"
            )

        if data.ndim < 2:
            raise InvalidInputError(
                f"can only encode arrays with at least 2 dimensions, got {data.ndim}D"
            )

        encoded = ebcc_encode(
            data.reshape(_as_3d_shape(data.shape)),
            self._config,
            library=self._library,
        )

        # message: ndim shape encoded
        message = [varint.encode(data.ndim)]
        for s in data.shape:
            message.append(varint.encode(s))
        message.append(encoded)

        return b"".join(message)

    def decode(self, buf: Buffer, out: None | Buffer = None) -> Buffer:
        """Decode the data in `buf`.

        Parameters
        ----------
        buf : Buffer
            Encoded data. Must be an object representing a bytestring, e.g.
            [`bytes`][bytes] or a 1D array of [`np.uint8`][numpy.uint8]s etc.
        out : None | Buffer
            Writeable buffer to store decoded data. N.B. if provided, this
            buffer must be exactly the right size to store the decoded data.

        Returns
        -------
        dec : Buffer
            Decoded data. May be any object supporting the new-style
            buffer protocol.
        """

        buf_bytes = numcodecs.compat.ensure_bytes(buf)
        buf_io = BytesIO(buf_bytes)

        try:
            ndim = varint.decode_stream(buf_io)
            if ndim < 2:
                raise InvalidInputError(
                    f"encoded data must have at least 2 dimensions, got {ndim}D"
                )
            if ndim > len(buf_bytes):
                raise InvalidInputError(
                    f"encoded data header is truncated for {ndim} dimensions"
                )
            shape = tuple(varint.decode_stream(buf_io) for _ in range(ndim))
        except (EOFError, TypeError, IndexError) as err:
            raise InvalidInputError("encoded data header is truncated") from err

        shape_3d = _as_3d_shape(shape)
        validate_shape(shape_3d)

        decoded = ebcc_decode(
            buf_bytes[buf_io.tell() :], shape_3d, library=self._library
        ).reshape(shape)

        return numcodecs.compat.ndarray_copy(decoded, out)  # type: ignore

    def get_config(self) -> dict:
        """
        Returns the configuration of the EBCC codec.

        [`numcodecs.registry.get_codec(config)`][numcodecs.registry.get_codec]
        can be used to reconstruct this codec from the returned config.

        Returns
        -------
        config : dict
            Configuration of the EBCC codec.
        """

        return dict(id=type(self).codec_id, **self._config.get_config())

    @classmethod
    def from_config(cls, config: dict) -> Self:
        """
        Instantiate the EBCC codec from a configuration [`dict`][dict].

        Parameters
        ----------
        config : dict
            Configuration of the EBCC codec.

        Returns
        -------
        codec : Self
            Instantiated EBCC codec.
        """

        return cls(**{k: v for k, v in config.items() if k != "id"})

    def __repr__(self) -> str:
        config = ", ".join(f"{k}={v!r}" for k, v in self._config.get_config().items())
        return f"{type(self).__name__}({config})"


def _as_3d_shape(shape: tuple[int, ...]) -> tuple[int, int, int]:
    *frames, height, width = shape

    n_frames = 1
    for f in frames:
        n_frames *= f

    return (n_frames, height, width)


numcodecs.registry.register_codec(EBCCCodec)
