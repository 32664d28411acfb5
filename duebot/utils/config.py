from __future__ import annotations
import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
ENV_PATH = os.path.join(ROOT, ".env")
load_dotenv(ENV_PATH)

_ON = {"1", "true", "yes", "on"}


def env_number(name: str, default, cast=float):
    """Blank or unset falls back to ``default``."""
    raw = (os.getenv(name) or "").strip()
    return cast(raw) if raw else default


class Settings(BaseModel):
    port: int = env_number("PORT", 3001, int)

    # billing API
    billing_url: str = os.getenv("BILLING_URL", "http://localhost:3000/api/listar").strip()
    billing_timeout: float = env_number("BILLING_TIMEOUT", 15.0)

    # WhatsApp Web gateway
    bridge_url: str = os.getenv("BRIDGE_URL", "http://localhost:8085").strip().rstrip("/")
    bridge_session: str = os.getenv("BRIDGE_SESSION", "default").strip()
    bridge_auth_dir: str = os.getenv("BRIDGE_AUTH_DIR", "auth_info").strip()
    bridge_timeout: float = env_number("BRIDGE_TIMEOUT", 20.0)
    browser: tuple[str, str, str] = ("Windows", "Chrome", "121.0.0.0")
    reconnect_delay: float = env_number("RECONNECT_DELAY", 2.0)
    session_autostart: bool = os.getenv("SESSION_AUTOSTART", "on").lower() in _ON

    # daily due-date check
    daily_cron: str = os.getenv("DAILY_CRON", "40 16 * * *").strip()
    daily_check: bool = os.getenv("DAILY_CHECK", "on").lower() in _ON
    daily_threshold_days: int = env_number("DAILY_THRESHOLD_DAYS", 3, int)
    timezone: str = os.getenv("TIMEZONE", "UTC").strip() or "UTC"

    # logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_dir: str = os.getenv("LOG_DIR", os.path.join(ROOT, ".run", "logs"))

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


S = Settings()
