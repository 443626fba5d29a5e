"""
Low-level declarations of the foreign EBCC interface and loading of the native
EBCC shared library.

The native library exports

```c
typedef enum { NONE, MAX_ERROR, RELATIVE_ERROR } residual_t;

typedef struct {
    size_t dims[3];
    float base_cr;
    residual_t residual_compression_type;
    float residual_cr;
    float error;
} codec_config_t;

size_t ebcc_encode(float *data, codec_config_t *config, uint8_t **out_buffer);
size_t ebcc_decode(uint8_t *data, size_t data_size, float **out_buffer);
void free_buffer(void *buffer);
```

Both `ebcc_encode` and `ebcc_decode` may modify their input buffers, and
return `0` with a `NULL` output buffer on failure. Every non-`NULL` output
buffer must be released with `free_buffer` exactly once.
"""

__all__ = [
    "ResidualCode",
    "CodecConfig",
    "ForeignLibrary",
    "NativeLibrary",
    "LibraryNotFoundError",
    "load_library",
    "default_library",
]

import ctypes
import ctypes.util
import os
import platform
from enum import IntEnum
from functools import cache
from pathlib import Path
from typing import Protocol

from typing_extensions import override  # MSPV 3.12

LIBRARY_PATH_ENV: str = "EBCC_LIBRARY_PATH"
""" Environment variable with the path to the native EBCC shared library. """

c_float_p = ctypes.POINTER(ctypes.c_float)
c_uint8_p = ctypes.POINTER(ctypes.c_uint8)


class ResidualCode(IntEnum):
    """
    The `residual_t` discriminant of the foreign configuration record.
    """

    NONE = 0
    MAX_ERROR = 1
    RELATIVE_ERROR = 2


class CodecConfig(ctypes.Structure):
    """
    The `codec_config_t` foreign configuration record.
    """

    _fields_ = [
        ("dims", ctypes.c_size_t * 3),
        ("base_cr", ctypes.c_float),
        ("residual_compression_type", ctypes.c_int),
        ("residual_cr", ctypes.c_float),
        ("error", ctypes.c_float),
    ]


class ForeignLibrary(Protocol):
    """
    The foreign EBCC interface.

    The [`NativeLibrary`][ebcc._ffi.NativeLibrary] implements it by calling
    into the native shared library, but any other implementation, e.g. a mock
    for testing, can be passed to [`ebcc_encode`][ebcc.codec.ebcc_encode] and
    [`ebcc_decode_into`][ebcc.codec.ebcc_decode_into] instead.

    All pointer arguments are passed as [`ctypes.pointer`][ctypes.pointer]s,
    and the output buffer slot is written through `out_buffer[0]`.
    """

    def ebcc_encode(
        self,
        data: "ctypes._Pointer[ctypes.c_float]",
        config: "ctypes._Pointer[CodecConfig]",
        out_buffer: "ctypes._Pointer[ctypes._Pointer[ctypes.c_uint8]]",
    ) -> int: ...

    def ebcc_decode(
        self,
        data: "ctypes._Pointer[ctypes.c_uint8]",
        data_size: int,
        out_buffer: "ctypes._Pointer[ctypes._Pointer[ctypes.c_float]]",
    ) -> int: ...

    def free_buffer(self, buffer: ctypes.c_void_p) -> None: ...


class LibraryNotFoundError(OSError):
    __slots__: tuple[str, ...] = ()

    def __init__(self, searched: tuple[str, ...]) -> None:
        super().__init__(searched)

    @property
    def searched(self) -> tuple[str, ...]:
        (searched,) = self.args
        return searched

    @override
    def __str__(self) -> str:
        msg = "the native EBCC shared library could not be found"

        if len(self.searched) > 0:
            msg = f"{msg} in {', '.join(self.searched)}"

        return f"{msg}; set the `{LIBRARY_PATH_ENV}` environment variable to its path"


class NativeLibrary:
    """
    The foreign EBCC interface, implemented by the native shared library.

    Parameters
    ----------
    path : str | Path
        Path to the native EBCC shared library.
    """

    __slots__ = ("_path", "_lib")
    _path: Path
    _lib: ctypes.CDLL

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lib = ctypes.CDLL(str(self._path))

        self._lib.ebcc_encode.argtypes = [
            c_float_p,
            ctypes.POINTER(CodecConfig),
            ctypes.POINTER(c_uint8_p),
        ]
        self._lib.ebcc_encode.restype = ctypes.c_size_t

        self._lib.ebcc_decode.argtypes = [
            c_uint8_p,
            ctypes.c_size_t,
            ctypes.POINTER(c_float_p),
        ]
        self._lib.ebcc_decode.restype = ctypes.c_size_t

        self._lib.free_buffer.argtypes = [ctypes.c_void_p]
        self._lib.free_buffer.restype = None

    @property
    def path(self) -> Path:
        return self._path

    def ebcc_encode(self, data, config, out_buffer) -> int:
        return self._lib.ebcc_encode(data, config, out_buffer)

    def ebcc_decode(self, data, data_size, out_buffer) -> int:
        return self._lib.ebcc_decode(data, data_size, out_buffer)

    def free_buffer(self, buffer) -> None:
        self._lib.free_buffer(buffer)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={str(self._path)!r})"


def _library_names() -> tuple[str, ...]:
    match platform.system():
        case "Windows":
            return ("ebcc.dll", "libebcc.dll")
        case "Darwin":
            return ("libebcc.dylib", "libebcc.so")
        case _:
            return ("libebcc.so",)


def _find_library() -> tuple[None | str, tuple[str, ...]]:
    searched: list[str] = []

    env_path = os.environ.get(LIBRARY_PATH_ENV)
    if env_path:
        return (env_path, ())

    # shared libraries shipped next to the package
    base_dir = Path(__file__).resolve().parent
    for name in _library_names():
        path = base_dir / name
        searched.append(str(path))
        if path.is_file():
            return (str(path), ())

    searched.append("the system library search path")
    return (ctypes.util.find_library("ebcc"), tuple(searched))


def load_library(path: None | str | Path = None) -> NativeLibrary:
    """
    Load the native EBCC shared library.

    The library is looked up, in order, at the explicit `path`, at the path
    in the `EBCC_LIBRARY_PATH` environment variable, next to this package,
    and on the system library search path.

    Parameters
    ----------
    path : None | str | Path
        Explicit path to the native EBCC shared library.

    Returns
    -------
    library : NativeLibrary
        The loaded native library.

    Raises
    ------
    LibraryNotFoundError
        if the library could not be found.
    OSError
        if the library could not be loaded.
    """

    if path is not None:
        return NativeLibrary(path)

    found, searched = _find_library()

    if found is None:
        raise LibraryNotFoundError(searched)

    return NativeLibrary(found)


@cache
def default_library() -> NativeLibrary:
    """
    The lazily loaded and cached default native EBCC library, see
    [`load_library`][ebcc._ffi.load_library].
    """

    return load_library()
