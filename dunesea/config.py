"""Configuration for the Dune Sea Diagnostics site server.

Business rules live here as plain constants - modify as needed without
touching code. Deployment values (ports, paths, mail credentials) come from
the environment; a local ``.env`` file is loaded if present.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

BUSINESS = {
    "name": "Dune Sea Diagnostics",
    "phone": "(913) 213-1439",
    "email": "service@duneseadiagnostics.com",
    "area": "Kansas City Metro",
    "address": "Kansas City, MO",
}

SCHEDULE_SETTINGS = {
    "slot_minutes": 120,
    "open_hour": 8,
    "close_hour": 18,
    "days_shown": 7,
    "appointment_duration_slots": 1,
}

# Weekly template, 0=Sunday .. 6=Saturday (same numbering the browser uses)
DEFAULT_WEEKLY = {
    "0": {"enabled": False, "start": 8, "end": 18},
    "1": {"enabled": True, "start": 8, "end": 18},
    "2": {"enabled": True, "start": 8, "end": 18},
    "3": {"enabled": True, "start": 8, "end": 18},
    "4": {"enabled": True, "start": 8, "end": 18},
    "5": {"enabled": True, "start": 8, "end": 18},
    "6": {"enabled": False, "start": 8, "end": 18},
}

# Data files (relative to DATA_DIR)
BOOKED_FILE = "booked.json"
PENDING_FILE = "pending.json"
AVAILABILITY_FILE = "availability.json"
INVENTORY_FILE = "inventory.json"
GALLERY_FILE = "gallery.json"
MESSAGES_FILE = "messages.json"

UPLOADS_DIRNAME = "uploads"
DEFAULT_IMAGE_FILE = "default.png"

# Inventory photos arrive as base64 data URLs, which inflate phone JPGs fast.
MAX_BODY_BYTES = 15 * 1024 * 1024

PROJECT_ROOT = Path(__file__).resolve().parent.parent

SITE_ROOT_CANDIDATES = ("", "REPO", "public", "site")


def detect_site_root(base_dir: Path) -> Path:
    """Return the first candidate directory holding an index.html."""
    for name in SITE_ROOT_CANDIDATES:
        candidate = base_dir / name if name else base_dir
        if (candidate / "index.html").is_file():
            return candidate
    return base_dir


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Deployment settings for one server process."""
    data_dir: Path = field(default_factory=lambda: PROJECT_ROOT / "data")
    site_root: Path = field(default_factory=lambda: detect_site_root(PROJECT_ROOT))
    host: str = "0.0.0.0"
    port: int = 8787
    timezone: str = "America/Chicago"
    admin_pin: Optional[str] = None
    gmail_user: str = ""
    gmail_app_password: str = ""
    mail_to: str = ""
    mail_from: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    log_level: str = "INFO"

    @property
    def uploads_dir(self) -> Path:
        return self.data_dir / UPLOADS_DIRNAME

    @property
    def admin_pin_required(self) -> bool:
        return bool(self.admin_pin)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        data_dir = os.getenv("DATA_DIR")
        site_root = os.getenv("SITE_ROOT")
        gmail_user = os.getenv("GMAIL_USER", "").strip()

        return cls(
            data_dir=Path(data_dir) if data_dir else PROJECT_ROOT / "data",
            site_root=Path(site_root) if site_root else detect_site_root(PROJECT_ROOT),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8787),
            timezone=os.getenv("BUSINESS_TZ", "America/Chicago"),
            admin_pin=os.getenv("ADMIN_PIN") or None,
            gmail_user=gmail_user,
            # App passwords are shown with spaces; SMTP doesn't care either way
            gmail_app_password=os.getenv("GMAIL_APP_PASSWORD", "").strip(),
            mail_to=os.getenv("MAIL_TO", "").strip() or gmail_user,
            mail_from=os.getenv("MAIL_FROM", "").strip() or gmail_user,
            smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
            smtp_port=_env_int("SMTP_PORT", 465),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
