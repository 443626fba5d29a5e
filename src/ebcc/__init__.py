"""
# Safe Python bindings for the EBCC compressor

[EBCC](https://github.com/spcl/EBCC) is an error-bounded lossy compressor for
3D [`float32`][numpy.float32] climate and weather data, which combines a
JPEG2000 base layer with an optional error-bounded residual layer.

This package provides a validated boundary around the native EBCC library:

- the [`EBCCConfig`][ebcc.EBCCConfig] is validated before compression,
- the input data is checked for its shape and for non-finite values before it
  is passed to EBCC,
- EBCC never sees (or modifies) the caller's arrays, only copies,
- all memory that EBCC allocates is copied into Python-owned buffers and then
  released exactly once.

All failures are raised as one of the
[`EBCCError`][ebcc.EBCCError] subclasses.

## Example

```py
import numpy as np
from ebcc import EBCCConfig, ebcc_decode_into, ebcc_encode

data = np.ones((1, 32, 32), dtype=np.float32)
config = EBCCConfig.max_absolute_error_bounded(15.0, 0.1)

compressed = ebcc_encode(data, config)

decompressed = np.zeros_like(data)
ebcc_decode_into(compressed, decompressed)

assert np.all(np.abs(data - decompressed) <= 0.1)
```
"""

__all__ = [
    "ebcc_encode",
    "ebcc_decode_into",
    "ebcc_decode",
    "EBCCConfig",
    "ResidualType",
    "Jpeg2000Only",
    "AbsoluteError",
    "RelativeError",
    "EBCCError",
    "InvalidInputError",
    "InvalidConfigError",
    "CompressionError",
    "DecompressionError",
    "ForeignLibrary",
    "load_library",
]

from ._ffi import ForeignLibrary, load_library
from .codec import ebcc_decode, ebcc_decode_into, ebcc_encode
from .config import (
    AbsoluteError,
    EBCCConfig,
    Jpeg2000Only,
    RelativeError,
    ResidualType,
)
from .error import (
    CompressionError,
    DecompressionError,
    EBCCError,
    InvalidConfigError,
    InvalidInputError,
)
