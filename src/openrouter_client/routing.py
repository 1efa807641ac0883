"""Provider routing preferences and model coverage profiles."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from openrouter_client.errors import ConfigurationError


class DataCollection(str, Enum):
    """Whether providers that may store or train on prompts are eligible."""

    ALLOW = "allow"
    DENY = "deny"


class ProviderSort(str, Enum):
    """Provider ordering strategy when no explicit order is given."""

    PRICE = "price"
    THROUGHPUT = "throughput"
    LATENCY = "latency"


class Quantization(str, Enum):
    """Quantization levels used to filter providers."""

    INT4 = "int4"
    INT8 = "int8"
    FP4 = "fp4"
    FP6 = "fp6"
    FP8 = "fp8"
    FP16 = "fp16"
    BF16 = "bf16"
    FP32 = "fp32"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProviderPreferences:
    """Hints controlling which backing provider serves a request.

    Every field is optional and independent; unset fields are left out of
    the ``provider`` payload so the service applies its defaults.
    """

    #: Provider identifiers to try, in order.
    order: tuple[str, ...] | None = None
    allow_fallbacks: bool | None = None
    #: Only use providers that support every request parameter.
    require_parameters: bool | None = None
    data_collection: DataCollection | None = None
    ignore: tuple[str, ...] | None = None
    quantizations: tuple[Quantization, ...] | None = None
    sort: ProviderSort | None = None

    def __post_init__(self) -> None:
        """Normalize sequences to tuples and coerce enum values."""
        for name in ("order", "ignore"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, tuple(value))
        if self.quantizations is not None:
            object.__setattr__(
                self,
                "quantizations",
                tuple(_coerce(Quantization, q, "quantizations") for q in self.quantizations),
            )
        if self.data_collection is not None:
            object.__setattr__(
                self,
                "data_collection",
                _coerce(DataCollection, self.data_collection, "data_collection"),
            )
        if self.sort is not None:
            object.__setattr__(self, "sort", _coerce(ProviderSort, self.sort, "sort"))

        if self.order is not None:
            if not self.order:
                raise ConfigurationError(
                    "Provider order list cannot be empty",
                    hint="Omit order to let the service choose.",
                )
            seen: set[str] = set()
            for provider in self.order:
                if provider in seen:
                    raise ConfigurationError(
                        f"Duplicate provider in order list: {provider}"
                    )
                seen.add(provider)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.order is not None:
            data["order"] = list(self.order)
        if self.allow_fallbacks is not None:
            data["allow_fallbacks"] = self.allow_fallbacks
        if self.require_parameters is not None:
            data["require_parameters"] = self.require_parameters
        if self.data_collection is not None:
            data["data_collection"] = self.data_collection.value
        if self.ignore is not None:
            data["ignore"] = list(self.ignore)
        if self.quantizations is not None:
            data["quantizations"] = [q.value for q in self.quantizations]
        if self.sort is not None:
            data["sort"] = self.sort.value
        return data


def _coerce(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    """Accept enum members or their string values."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(repr(m.value) for m in enum_cls)
        raise ConfigurationError(
            f"Invalid {field_name} value: {value!r}",
            hint=f"Expected one of {allowed}.",
        ) from None


# --- Model coverage ---


@dataclass(frozen=True)
class ModelCoverageProfile:
    """A primary model plus the fallbacks to try when it is unavailable."""

    primary: str
    fallbacks: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.primary, str) or not self.primary.strip():
            raise ConfigurationError("Model coverage profile needs a primary model")
        if self.fallbacks is not None:
            object.__setattr__(self, "fallbacks", tuple(self.fallbacks))


class PredefinedProfile(str, Enum):
    """Named coverage profiles mapped to a fixed primary model."""

    LOWEST_LATENCY = "lowest_latency"
    LOWEST_COST = "lowest_cost"
    HIGHEST_QUALITY = "highest_quality"


_PREDEFINED_PRIMARY: dict[PredefinedProfile, str] = {
    PredefinedProfile.LOWEST_LATENCY: "openai/gpt-3.5-turbo",
    PredefinedProfile.LOWEST_COST: "openai/gpt-3.5-turbo",
    PredefinedProfile.HIGHEST_QUALITY: "anthropic/claude-3-opus-20240229",
}

DEFAULT_MODEL = "openai/gpt-4o"


@dataclass(frozen=True)
class RouterConfig:
    """Routing defaults a ready client applies to the requests it builds."""

    profile: PredefinedProfile | ModelCoverageProfile | None = None
    provider_preferences: ProviderPreferences | None = None

    def primary_model(self) -> str:
        if isinstance(self.profile, ModelCoverageProfile):
            return self.profile.primary
        if isinstance(self.profile, PredefinedProfile):
            return _PREDEFINED_PRIMARY[self.profile]
        return DEFAULT_MODEL

    def fallback_models(self) -> tuple[str, ...] | None:
        if isinstance(self.profile, ModelCoverageProfile):
            return self.profile.fallbacks
        return None


class ModelGroups:
    """Ready-made coverage profiles for common tasks."""

    @staticmethod
    def general() -> ModelCoverageProfile:
        return ModelCoverageProfile(
            primary="openai/gpt-4o",
            fallbacks=(
                "anthropic/claude-3-opus-20240229",
                "anthropic/claude-3-sonnet-20240229",
                "google/gemini-1.5-pro",
            ),
        )

    @staticmethod
    def code() -> ModelCoverageProfile:
        return ModelCoverageProfile(
            primary="anthropic/claude-3-opus-20240229",
            fallbacks=("openai/gpt-4o", "google/gemini-1.5-pro"),
        )

    @staticmethod
    def long_context() -> ModelCoverageProfile:
        return ModelCoverageProfile(
            primary="anthropic/claude-3-opus-20240229",
            fallbacks=("google/gemini-1.5-pro", "openai/gpt-4-turbo"),
        )
