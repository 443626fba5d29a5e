import atheris

with atheris.instrument_imports():
    import sys
    import warnings

    import numcodecs
    import numcodecs.registry
    import numpy as np

    from ebcc.config import ResidualKind
    from ebcc.error import CompressionError, InvalidConfigError, InvalidInputError
    from numcodecs_ebcc import EBCCCodec


warnings.filterwarnings("error")


np.set_printoptions(floatmode="unique")


def generate_codec(data: atheris.FuzzedDataProvider) -> EBCCCodec:
    residual = list(ResidualKind)[data.ConsumeIntInRange(0, len(ResidualKind) - 1)]

    return EBCCCodec(
        base_cr=data.ConsumeFloat(),
        residual=residual.name,
        error=None if residual == ResidualKind.jpeg2000_only else data.ConsumeFloat(),
    )


def check_one_input(data) -> None:
    data = atheris.FuzzedDataProvider(data)

    try:
        codec = generate_codec(data)
    except InvalidConfigError:
        return

    grepr = repr(codec)
    gconfig = codec.get_config()

    codec = numcodecs.registry.get_codec(gconfig)
    assert codec.get_config() == gconfig

    # decoding arbitrary bytes must fail gracefully
    garbage = data.ConsumeBytes(data.ConsumeIntInRange(0, 256))
    try:
        codec.decode(garbage)
    except (InvalidInputError, RuntimeError):
        pass

    frames = data.ConsumeIntInRange(0, 2)
    height = data.ConsumeIntInRange(30, 40)
    width = data.ConsumeIntInRange(30, 40)

    size = frames * height * width
    raw_bytes = data.ConsumeBytes(size * 4)
    raw_bytes += b"\0" * (size * 4 - len(raw_bytes))
    raw = (
        np.frombuffer(raw_bytes, dtype=np.float32, count=size)
        .reshape(frames, height, width)
        .copy()
    )

    try:
        encoded = codec.encode(raw)
    except InvalidInputError:
        return
    except CompressionError:
        print(f"\n===\n\ncodec = {grepr}\n\ndata = {raw!r}\n\n===\n")  # noqa: T201
        raise

    try:
        decoded = codec.decode(encoded, out=np.empty_like(raw))
        assert decoded.shape == raw.shape

        if codec.config.get_config()["residual"] == "absolute_error":
            error = codec.config.get_config()["error"]
            with np.errstate(over="ignore"):
                assert np.all(np.abs(decoded - raw) <= (error + 1e-4))
    except Exception:
        print(f"\n===\n\ncodec = {grepr}\n\ndata = {raw!r}\n\n===\n")  # noqa: T201
        raise


atheris.Setup(sys.argv, check_one_input)
atheris.Fuzz()
