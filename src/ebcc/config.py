"""
Configuration types for EBCC compression.
"""

__all__ = [
    "EBCCConfig",
    "ResidualType",
    "ResidualKind",
    "Jpeg2000Only",
    "AbsoluteError",
    "RelativeError",
]

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TypeAlias

from typing_extensions import Self  # MSPV 3.11

from .error import InvalidConfigError, ctx, lookup_enum_or_raise
from .typing import JSON


class ResidualKind(Enum):
    """
    Enumeration of the residual compression kinds, by their configuration
    name.
    """

    jpeg2000_only = auto()
    """No residual compression, only the JPEG2000 base layer."""

    absolute_error = auto()
    """Residual compression with an absolute maximum error bound."""

    relative_error = auto()
    """Residual compression with a relative error bound."""


@dataclass(frozen=True)
class Jpeg2000Only:
    """
    No residual compression, only the JPEG2000 base layer is used.
    """

    @property
    def kind(self) -> ResidualKind:
        return ResidualKind.jpeg2000_only


@dataclass(frozen=True)
class AbsoluteError:
    """
    Residual compression with an absolute maximum error bound:

    \\[
        |x - \\hat{x}| \\leq \\epsilon_{abs}
    \\]
    """

    error: float
    """The absolute error bound, must be positive."""

    @property
    def kind(self) -> ResidualKind:
        return ResidualKind.absolute_error


@dataclass(frozen=True)
class RelativeError:
    """
    Residual compression with a relative error bound.
    """

    error: float
    """The relative error bound, must be positive."""

    @property
    def kind(self) -> ResidualKind:
        return ResidualKind.relative_error


ResidualType: TypeAlias = Jpeg2000Only | AbsoluteError | RelativeError
""" The residual compression that is applied on top of the JPEG2000 base layer. """


@dataclass(frozen=True)
class EBCCConfig:
    """
    Configuration for EBCC compression.

    The configuration is immutable. It can be constructed with invalid
    parameters, but [`ebcc_encode`][ebcc.codec.ebcc_encode] always calls
    [`validate`][ebcc.config.EBCCConfig.validate] before any data is
    passed to the foreign compressor.

    Parameters
    ----------
    base_cr : float
        Base compression ratio for the JPEG2000 layer.
    residual : ResidualType
        Type of residual compression to apply.
    """

    base_cr: float = 10.0
    residual: ResidualType = field(default_factory=Jpeg2000Only)

    @classmethod
    def jpeg2000_only(cls, base_cr: float) -> Self:
        """
        Create a configuration for JPEG2000-only compression.
        """

        return cls(base_cr=base_cr, residual=Jpeg2000Only())

    @classmethod
    def max_absolute_error_bounded(cls, base_cr: float, error: float) -> Self:
        """
        Create a configuration for maximum absolute error bounded compression.
        """

        return cls(base_cr=base_cr, residual=AbsoluteError(error))

    @classmethod
    def relative_error_bounded(cls, base_cr: float, error: float) -> Self:
        """
        Create a configuration for relative error bounded compression.
        """

        return cls(base_cr=base_cr, residual=RelativeError(error))

    def validate(self) -> None:
        """
        Validate the configuration parameters.

        Raises
        ------
        InvalidConfigError
            if `base_cr` is non-positive or NaN.
        InvalidConfigError
            if the absolute or relative error bound is non-positive or NaN.
        """

        # NaN fails the comparison and is rejected as well
        with ctx.parameter("base_cr"):
            if not (self.base_cr > 0.0):
                raise InvalidConfigError(
                    f"base compression ratio must be positive, got {self.base_cr}"
                )

        with ctx.parameter("residual"):
            match self.residual:
                case AbsoluteError(error) | RelativeError(error):
                    with ctx.parameter("error"):
                        if not (error > 0.0):
                            raise InvalidConfigError(
                                f"error bound must be positive, got {error}"
                            )
                case Jpeg2000Only():
                    pass
                case residual:
                    raise InvalidConfigError(
                        f"unknown residual compression type {residual!r}"
                    )

    def get_config(self) -> dict[str, JSON]:
        """
        Returns the configuration as a JSON-compatible [`dict`][dict].

        [`EBCCConfig.from_config(config)`][ebcc.config.EBCCConfig.from_config]
        can be used to reconstruct the configuration.

        Returns
        -------
        config : dict
            The `base_cr`, the `residual` name and, for the error bounded
            residuals, the `error`.
        """

        config: dict[str, JSON] = dict(
            base_cr=float(self.base_cr), residual=self.residual.kind.name
        )

        match self.residual:
            case AbsoluteError(error) | RelativeError(error):
                config["error"] = float(error)
            case Jpeg2000Only():
                pass

        return config

    @classmethod
    def from_config(cls, config: dict[str, JSON]) -> Self:
        """
        Instantiate the configuration from a configuration [`dict`][dict].

        The configuration is not validated.

        Parameters
        ----------
        config : dict
            Configuration with a `base_cr`, a `residual` name and, for the
            error bounded residuals, an `error`.

        Returns
        -------
        config : Self
            The instantiated configuration.

        Raises
        ------
        InvalidConfigError
            if the `residual` is unknown, or if an `error` is missing or
            extraneous.
        """

        config = dict(config)

        base_cr = config.pop("base_cr", cls.base_cr)
        residual_name = config.pop("residual", ResidualKind.jpeg2000_only.name)
        error = config.pop("error", None)

        if len(config) > 0:
            raise InvalidConfigError(
                f"unknown configuration parameters {sorted(config)}"
            )

        with ctx.parameter("base_cr"):
            if isinstance(base_cr, bool) or not isinstance(base_cr, int | float):
                raise InvalidConfigError(f"base_cr must be a number, got {base_cr!r}")

        with ctx.parameter("residual"):
            if not isinstance(residual_name, str):
                raise InvalidConfigError(
                    f"residual must be a name, got {residual_name!r}"
                )

            kind = lookup_enum_or_raise(ResidualKind, residual_name)

            residual: ResidualType
            match kind:
                case ResidualKind.jpeg2000_only:
                    if error is not None:
                        raise InvalidConfigError(
                            "jpeg2000_only residual does not take an error bound"
                        )
                    residual = Jpeg2000Only()
                case ResidualKind.absolute_error | ResidualKind.relative_error:
                    with ctx.parameter("error"):
                        if isinstance(error, bool) or not isinstance(
                            error, int | float
                        ):
                            raise InvalidConfigError(
                                f"{kind.name} residual requires a numeric error "
                                + f"bound, got {error!r}"
                            )
                    residual = (
                        AbsoluteError(float(error))
                        if kind == ResidualKind.absolute_error
                        else RelativeError(float(error))
                    )

        return cls(base_cr=float(base_cr), residual=residual)
