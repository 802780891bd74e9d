"""Configuration loader for PageStitch using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags (where applicable)
  2. Environment variables (PAGESTITCH_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml

The settle delays and the readiness ceiling are empirically tuned defaults.
They trade capture fidelity against run time and can be changed freely.
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("PAGESTITCH_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "PAGESTITCH_ENV"
DEFAULT_ENV = "local"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Overlay taxonomy used when no TOML layer provides one.
DEFAULT_OVERLAY_SELECTORS: list[str] = [
    ".dialog-message.dialog-lightbox-message",
    '[data-elementor-type="popup"]',
    ".elementor-location-popup",
    ".elementor-popup-modal",
    '[data-elementor-settings*="page_load"]',
    '[data-elementor-post-type="elementor_library"]',
    'div[class*="elementor-popup"]',
    'div[class*="dialog-lightbox"]',
    'div[class*="dialog-message"]',
]


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class BrowserSettings(BaseSettings):
    """Playwright browser and page settings."""

    model_config = SettingsConfigDict(env_prefix="PAGESTITCH_BROWSER__")

    headless: bool = True
    sandbox: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = Field(1920, gt=0)
    viewport_height: int = Field(1080, gt=0)
    device_scale_factor: float = Field(1.0, gt=0)
    navigation_timeout_ms: int = Field(50_000, gt=0)
    page_timeout_ms: int = Field(60_000, gt=0)
    wait_for_network_idle: bool = True
    emulate_media: Literal["screen", "print"] = "screen"
    extra_args: list[str] = Field(default_factory=list)

    @property
    def navigation_bound_ms(self) -> int:
        """Navigation timeout, never longer than the per-page timeout."""
        return min(self.navigation_timeout_ms, self.page_timeout_ms)


class ReadinessSettings(BaseSettings):
    """Readiness heuristics and settle delays (all tunable)."""

    model_config = SettingsConfigDict(env_prefix="PAGESTITCH_READINESS__")

    ceiling_seconds: float = Field(15.0, ge=0)
    tick_seconds: float = Field(0.25, gt=0)
    settle_seconds: float = Field(3.0, ge=0)
    layout_settle_seconds: float = Field(1.0, ge=0)
    content_selector: str = "main, #main, .main, article, .content"
    header_selector: str = "header"


class OverlaySettings(BaseSettings):
    """Overlay suppression selectors (site-specific data, not logic)."""

    model_config = SettingsConfigDict(env_prefix="PAGESTITCH_OVERLAY__")

    selectors: list[str] = Field(default_factory=lambda: list(DEFAULT_OVERLAY_SELECTORS))
    primary_selector: str = ".dialog-message.dialog-lightbox-message"
    pin_header: bool = True


class BatchSettings(BaseSettings):
    """Batch run layout and pacing."""

    model_config = SettingsConfigDict(env_prefix="PAGESTITCH_BATCH__")

    output_root: str = "output"
    inter_job_delay_seconds: float = Field(2.0, ge=0)
    screenshots_dirname: str = "screenshots"
    documents_dirname: str = "pdfs"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root PageStitch settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="PAGESTITCH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    readiness: ReadinessSettings = Field(default_factory=ReadinessSettings)
    overlay: OverlaySettings = Field(default_factory=OverlaySettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths against project_root."""
        if not Path(self.batch.output_root).is_absolute():
            self.batch.output_root = str(self.project_root / self.batch.output_root)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
