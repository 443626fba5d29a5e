import numpy as np
import pytest

from ebcc.error import IndexContextFragment, InvalidInputError, ParameterContextFragment
from ebcc.validate import (
    validate_decode_input,
    validate_decode_output,
    validate_encode_input,
    validate_shape,
)


@pytest.mark.parametrize(
    "shape", [(1, 32, 32), (3, 32, 64), (1, 721, 1440), (2**20, 32, 32)]
)
def test_valid_shape(shape):
    validate_shape(shape)


@pytest.mark.parametrize("shape", [(0, 32, 32), (1, 0, 32), (1, 32, 0), (0, 0, 0)])
def test_zero_dimension(shape):
    with pytest.raises(InvalidInputError, match="all dimensions must be > 0"):
        validate_shape(shape)


@pytest.mark.parametrize("shape", [(32, 32), (1, 1, 32, 32), ()])
def test_not_3d(shape):
    with pytest.raises(InvalidInputError, match="data must be 3D"):
        validate_shape(shape)


def test_overflow():
    with pytest.raises(InvalidInputError, match="dimension overflow"):
        validate_shape((2**40, 2**20, 2**20))

    with pytest.raises(InvalidInputError, match="data too large"):
        validate_shape((np.iinfo(np.intp).max // (32 * 32 * 2), 32, 32))


@pytest.mark.parametrize("shape", [(1, 31, 32), (1, 32, 31), (4, 8, 8), (1, 1, 1000)])
def test_minimum_block_size(shape):
    _frames, height, width = shape

    with pytest.raises(
        InvalidInputError, match=f"at least 32x32, got {height}x{width}"
    ):
        validate_shape(shape)


def test_encode_input_valid():
    validate_encode_input(np.zeros((2, 32, 48), dtype=np.float32))
    validate_encode_input(
        np.linspace(-1, 1, 64 * 64, dtype=np.float32)
        .reshape(1, 64, 64)
        .transpose(0, 2, 1)
    )


def test_encode_input_dtype():
    with pytest.raises(InvalidInputError, match="data: data must be of dtype float32"):
        validate_encode_input(np.zeros((1, 32, 32), dtype=np.float64))

    with pytest.raises(InvalidInputError, match="data must be a numpy array"):
        validate_encode_input([[[0.0] * 32] * 32])  # type: ignore


def test_encode_input_shape():
    with pytest.raises(InvalidInputError, match="all dimensions must be > 0"):
        validate_encode_input(np.zeros((0, 32, 32), dtype=np.float32))

    with pytest.raises(InvalidInputError, match="data must be 3D"):
        validate_encode_input(np.zeros((32, 32), dtype=np.float32))

    with pytest.raises(InvalidInputError, match="at least 32x32, got 16x32"):
        validate_encode_input(np.zeros((1, 16, 32), dtype=np.float32))


@pytest.mark.parametrize("value", [np.nan, np.inf, -np.inf])
def test_encode_input_non_finite(value):
    data = np.ones((2, 32, 32), dtype=np.float32)
    data[1, 3, 4] = value
    data[1, 5, 6] = value

    with pytest.raises(InvalidInputError, match="non-finite value") as excinfo:
        validate_encode_input(data)

    index = 32 * 32 + 3 * 32 + 4
    assert excinfo.value.context.fragments == (
        ParameterContextFragment("data"),
        IndexContextFragment(index),
    )
    assert f"data[{index}]" in str(excinfo.value)


def test_encode_input_non_finite_index_is_c_order():
    data = np.ones((1, 32, 32), dtype=np.float32)
    data[0, 1, 0] = np.nan

    with pytest.raises(InvalidInputError, match=r"data\[32\]"):
        validate_encode_input(np.asfortranarray(data))


def test_decode_input():
    validate_decode_input(b"\x00")
    validate_decode_input(np.zeros(4, dtype=np.uint8))

    with pytest.raises(InvalidInputError, match="compressed data is empty"):
        validate_decode_input(b"")

    with pytest.raises(InvalidInputError, match="compressed data is empty"):
        validate_decode_input(np.array([], dtype=np.uint8))


def test_decode_output():
    validate_decode_output(np.zeros((1, 32, 32), dtype=np.float32))

    with pytest.raises(InvalidInputError, match="out: output must be of dtype float32"):
        validate_decode_output(np.zeros((1, 32, 32), dtype=np.float64))

    with pytest.raises(InvalidInputError, match="output must be 3D"):
        validate_decode_output(np.zeros((32, 32), dtype=np.float32))

    out = np.zeros((1, 32, 32), dtype=np.float32)
    out.flags.writeable = False
    with pytest.raises(InvalidInputError, match="output must be writeable"):
        validate_decode_output(out)
