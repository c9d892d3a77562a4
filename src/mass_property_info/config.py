from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


DEFAULT_FORM_URL = (
    "https://arcgisserver.digital.mass.gov/ParcelAccessibility2/MassPropertyInfo.aspx"
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

PRODUCTION_ORIGINS = (
    "https://www.valorhvacma.com",
    "https://valorhvacma.com",
    "http://localhost:3000",
)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = str(raw).strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def _env_viewport(name: str, default: Tuple[int, int]) -> Tuple[int, int]:
    raw = (os.getenv(name) or "").strip().lower()
    if "x" not in raw:
        return default
    w, _, h = raw.partition("x")
    try:
        width, height = int(w), int(h)
    except ValueError:
        return default
    if width <= 0 or height <= 0:
        return default
    return width, height


def _allowed_origins() -> Tuple[str, ...]:
    origins = [os.getenv("MPI_FRONTEND_URL") or "http://localhost:3000"]
    for origin in PRODUCTION_ORIGINS:
        if origin not in origins:
            origins.append(origin)
    return tuple(o for o in origins if o)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the lookup service.

    All durations are seconds. Timeouts bound a wait; delays are fixed sleeps.
    """

    form_url: str = DEFAULT_FORM_URL
    headless: bool = True
    chromium_sandbox: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    viewport: Tuple[int, int] = (1920, 1080)

    page_load_timeout_s: float = 30.0
    form_ready_timeout_s: float = 10.0
    repopulate_timeout_s: float = 15.0
    results_timeout_s: float = 15.0
    poll_interval_s: float = 0.25

    grace_delay_s: float = 3.0
    pre_submit_delay_s: float = 1.0
    settle_delay_s: float = 3.0

    allowed_origins: Tuple[str, ...] = PRODUCTION_ORIGINS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        base = cls()
        return cls(
            form_url=(os.getenv("MPI_FORM_URL") or "").strip() or base.form_url,
            headless=_env_bool("MPI_HEADLESS", base.headless),
            chromium_sandbox=_env_bool("MPI_CHROMIUM_SANDBOX", base.chromium_sandbox),
            user_agent=(os.getenv("MPI_USER_AGENT") or "").strip() or base.user_agent,
            viewport=_env_viewport("MPI_VIEWPORT", base.viewport),
            page_load_timeout_s=_env_float("MPI_PAGE_LOAD_TIMEOUT_S", base.page_load_timeout_s),
            form_ready_timeout_s=_env_float("MPI_FORM_READY_TIMEOUT_S", base.form_ready_timeout_s),
            repopulate_timeout_s=_env_float("MPI_REPOPULATE_TIMEOUT_S", base.repopulate_timeout_s),
            results_timeout_s=_env_float("MPI_RESULTS_TIMEOUT_S", base.results_timeout_s),
            poll_interval_s=_env_float("MPI_POLL_INTERVAL_S", base.poll_interval_s),
            grace_delay_s=_env_float("MPI_GRACE_DELAY_S", base.grace_delay_s),
            pre_submit_delay_s=_env_float("MPI_PRE_SUBMIT_DELAY_S", base.pre_submit_delay_s),
            settle_delay_s=_env_float("MPI_SETTLE_DELAY_S", base.settle_delay_s),
            allowed_origins=_allowed_origins(),
            log_level=(os.getenv("MPI_LOG_LEVEL") or base.log_level).strip().upper(),
        )

    @property
    def viewport_size(self) -> dict:
        width, height = self.viewport
        return {"width": width, "height": height}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Test helper to force env re-read."""

    get_settings.cache_clear()


def to_ms(seconds: Optional[float]) -> float:
    return max(0.0, float(seconds or 0.0)) * 1000.0
