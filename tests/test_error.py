import pytest

from ebcc.error import (
    CompressionError,
    DecompressionError,
    EBCCError,
    ErrorContext,
    IndexContextFragment,
    InvalidConfigError,
    InvalidInputError,
    ParameterContextFragment,
    ctx,
)


@pytest.mark.parametrize(
    "error,base,kind",
    [
        (InvalidInputError, ValueError, "Invalid input data"),
        (InvalidConfigError, ValueError, "Invalid configuration"),
        (CompressionError, RuntimeError, "Compression failed"),
        (DecompressionError, RuntimeError, "Decompression failed"),
    ],
)
def test_taxonomy(error, base, kind):
    err = error("oops")

    assert isinstance(err, EBCCError)
    assert isinstance(err, base)
    assert err.message == "oops"
    assert str(err) == f"{kind}: oops"


def test_context():
    with pytest.raises(InvalidInputError) as excinfo:
        with ctx.parameter("data"):
            with ctx.index(42):
                raise InvalidInputError("non-finite value nan")

    assert excinfo.value.context.fragments == (
        ParameterContextFragment("data"),
        IndexContextFragment(42),
    )
    assert str(excinfo.value.context) == "data[42]"
    assert str(excinfo.value) == "Invalid input data: data[42]: non-finite value nan"


def test_context_nested_parameters():
    with pytest.raises(InvalidConfigError) as excinfo:
        with ctx.parameter("residual"):
            with ctx.parameter("error"):
                raise InvalidConfigError("error bound must be positive")

    assert str(excinfo.value.context) == "residual.error"


def test_context_ignores_other_errors():
    with pytest.raises(KeyError):
        with ctx.parameter("data"):
            raise KeyError("data")


def test_empty_context():
    err = CompressionError("failed")

    assert str(err.context) == ""
    assert (err | ErrorContext()).context.fragments == ()


def test_ctx_singleton():
    with pytest.raises(TypeError, match="singleton"):
        ctx()
