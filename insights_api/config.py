"""Environment-driven settings shared by the chart and AI services."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class ProviderSettings:
    """Connection details for one generative AI provider tier."""

    provider: str
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 60.0

    @classmethod
    def from_env(cls, prefix: str, default_provider: str) -> "ProviderSettings":
        provider = (_env_str(f"{prefix}_PROVIDER", default_provider) or default_provider).lower()
        if provider == "ollama":
            default_model = "llama3"
            base_url = _env_str(f"{prefix}_BASE_URL", _env_str("OLLAMA_HOST", "http://localhost:11434"))
            api_key = _env_str(f"{prefix}_API_KEY")
        else:
            default_model = "gpt-4o-mini"
            base_url = _env_str(f"{prefix}_BASE_URL")
            api_key = _env_str(f"{prefix}_API_KEY", _env_str("OPENAI_API_KEY"))
        return cls(
            provider=provider,
            model=_env_str(f"{prefix}_MODEL", default_model) or default_model,
            api_key=api_key,
            base_url=base_url,
            timeout=_env_float("LLM_TIMEOUT", 60.0),
        )


@dataclass(frozen=True)
class Settings:
    astrology_api_url: str = "https://json.freeastrologyapi.com"
    astrology_api_key: Optional[str] = None
    astrology_api_timeout: float = 15.0
    ayanamsha: str = "lahiri"
    observation_point: str = "topocentric"
    language: str = "en"

    default_lat: float = 28.6139
    default_lon: float = 77.2090
    default_tz: str = "Asia/Kolkata"
    default_offset: float = 5.5
    default_label: str = "New Delhi, India"

    primary_llm: ProviderSettings = field(
        default_factory=lambda: ProviderSettings(provider="openai", model="gpt-4o-mini")
    )
    secondary_llm: ProviderSettings = field(
        default_factory=lambda: ProviderSettings(
            provider="ollama", model="llama3", base_url="http://localhost:11434"
        )
    )

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            astrology_api_url=(
                _env_str("ASTROLOGY_API_URL", "https://json.freeastrologyapi.com") or ""
            ).rstrip("/"),
            astrology_api_key=_env_str("ASTROLOGY_API_KEY"),
            astrology_api_timeout=_env_float("ASTROLOGY_API_TIMEOUT", 15.0),
            ayanamsha=_env_str("ASTROLOGY_AYANAMSHA", "lahiri") or "lahiri",
            observation_point=_env_str("ASTROLOGY_OBSERVATION_POINT", "topocentric") or "topocentric",
            language=_env_str("ASTROLOGY_LANGUAGE", "en") or "en",
            default_lat=_env_float("DEFAULT_PLACE_LAT", 28.6139),
            default_lon=_env_float("DEFAULT_PLACE_LON", 77.2090),
            default_tz=_env_str("DEFAULT_PLACE_TZ", "Asia/Kolkata") or "Asia/Kolkata",
            default_offset=_env_float("DEFAULT_PLACE_OFFSET", 5.5),
            default_label=_env_str("DEFAULT_PLACE_LABEL", "New Delhi, India") or "New Delhi, India",
            primary_llm=ProviderSettings.from_env("PRIMARY_LLM", "openai"),
            secondary_llm=ProviderSettings.from_env("SECONDARY_LLM", "ollama"),
        )


def get_settings() -> Settings:
    """Read settings from the current environment."""

    return Settings.from_env()
