import numpy as np
import pytest

from ebcc import EBCCConfig, InvalidInputError, ebcc_decode_into, ebcc_encode
from ebcc._ffi import default_library


def _has_native_library() -> bool:
    try:
        default_library()
    except OSError:
        return False
    return True


pytestmark = pytest.mark.skipif(
    not _has_native_library(), reason="the native EBCC library is not available"
)


def arange_data() -> np.ndarray:
    return (np.arange(32 * 32, dtype=np.float32) * np.float32(0.1)).reshape(1, 32, 32)


def roundtrip(data: np.ndarray, config: EBCCConfig) -> tuple[bytes, np.ndarray]:
    compressed = ebcc_encode(data, config)

    decompressed = np.zeros_like(data)
    ebcc_decode_into(compressed, decompressed)

    return compressed, decompressed


def test_basic_compression_roundtrip():
    data = np.ones((1, 32, 32), dtype=np.float32)

    compressed, decompressed = roundtrip(data, EBCCConfig.jpeg2000_only(10.0))

    assert decompressed.shape == (1, 32, 32)
    assert len(compressed) < 32 * 32 * 4


def test_jpeg2000_only_compression():
    data = arange_data()

    _compressed, decompressed = roundtrip(data, EBCCConfig.jpeg2000_only(10.0))

    max_error = np.max(np.abs(data - decompressed))
    data_range = np.max(data) - np.min(data)

    assert max_error < data_range * 0.1


def test_max_error_bounded_compression():
    data = arange_data()
    error = 0.1

    _compressed, decompressed = roundtrip(
        data, EBCCConfig.max_absolute_error_bounded(15.0, error)
    )

    np.testing.assert_allclose(decompressed, data, rtol=0.0, atol=error + 1e-4)


def test_relative_error_bounded_compression():
    data = arange_data()

    _compressed, decompressed = roundtrip(
        data, EBCCConfig.relative_error_bounded(15.0, 0.001)
    )

    max_error = np.max(np.abs(data - decompressed))
    data_range = np.max(data) - np.min(data)

    assert max_error < data_range * 0.1


def test_constant_field():
    data = np.full((1, 32, 32), 42.0, dtype=np.float32)

    compressed, decompressed = roundtrip(data, EBCCConfig())

    np.testing.assert_allclose(decompressed, data, rtol=0.0, atol=1e-6)

    # expect at least 2:1 compression for constant fields
    assert data.nbytes / len(compressed) >= 2.0


def test_large_array():
    frames, height, width = 1, 721, 1440

    lat = -90.0 + (np.arange(height) / height) * 180.0
    lon = -180.0 + (np.arange(width) / width) * 360.0
    data = (
        273.15
        + 30.0 * (1.0 - np.abs(lat)[:, None] / 90.0)
        + 5.0 * np.sin(lon / 180.0)[None, :]
    ).astype(np.float32)[None].repeat(frames, axis=0)

    error = 0.1
    compressed, decompressed = roundtrip(
        data, EBCCConfig.max_absolute_error_bounded(20.0, error)
    )

    assert data.nbytes / len(compressed) > 5.0
    np.testing.assert_allclose(decompressed, data, rtol=0.0, atol=error + 1e-4)


@pytest.mark.parametrize("error", [0.01, 0.1, 1.0, 5.0])
def test_error_bounds(error):
    data = (np.sin(np.arange(32 * 32, dtype=np.float32) * 0.1) * 100.0).reshape(
        1, 32, 32
    )

    _compressed, decompressed = roundtrip(
        data, EBCCConfig.max_absolute_error_bounded(15.0, error)
    )

    np.testing.assert_allclose(decompressed, data, rtol=0.0, atol=error + 1e-4)


def test_multiple_frames():
    data = np.stack([arange_data()[0] * (i + 1) for i in range(3)])

    _compressed, decompressed = roundtrip(
        data, EBCCConfig.max_absolute_error_bounded(10.0, 0.5)
    )

    assert decompressed.shape == (3, 32, 32)
    np.testing.assert_allclose(decompressed, data, rtol=0.0, atol=0.5 + 1e-4)


def test_decode_wrong_shape():
    compressed = ebcc_encode(np.ones((1, 32, 32), dtype=np.float32), EBCCConfig())

    out = np.zeros((2, 32, 32), dtype=np.float32)
    with pytest.raises(InvalidInputError, match="should be of shape"):
        ebcc_decode_into(compressed, out)

    assert np.all(out == 0.0)
