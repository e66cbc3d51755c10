"""
Application settings loader.

Loads package defaults from config/defaults.yml and applies environment
overrides on top. Settings are immutable and cached for the process.

Usage:
    from feelin_pay.config.settings import get_settings

    settings = get_settings()
    timeout = settings.external_timeout_seconds
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULTS_PATH = Path(__file__).parent / "defaults.yml"

# (env var, dotted key in defaults.yml, caster)
_ENV_OVERRIDES = [
    ("EXTERNAL_TIMEOUT_SECONDS", "external_timeout_seconds", float),
    ("TOKEN_REFRESH_MARGIN_MINUTES", "token_refresh_margin_minutes", int),
    ("LEDGER_FOLDER_NAME", "ledger.folder_name", str),
    ("GOOGLE_SERVICE_ACCOUNT_FILE", "google.service_account_file", str),
]


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""
    external_timeout_seconds: float = 10.0
    token_refresh_margin_minutes: int = 5
    ledger_folder_name: str = "Reporte de Pagos - Feelin Pay"
    share_folder_with_owner: bool = True
    drive_base_url: str = "https://www.googleapis.com/drive/v3"
    sheets_base_url: str = "https://sheets.googleapis.com/v4"
    google_token_uri: str = "https://oauth2.googleapis.com/token"
    google_service_account_file: Optional[str] = None
    google_scopes: List[str] = field(default_factory=list)
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    fcm_base_url: str = "https://fcm.googleapis.com/v1"
    fcm_scopes: List[str] = field(default_factory=list)
    firebase_project_id: Optional[str] = None


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}
    except FileNotFoundError:
        logger.warning("Settings defaults file not found", extra={"path": str(path)})
        return {}


def _set_dotted(data: Dict[str, Any], dotted_key: str, value: Any) -> None:
    parts = dotted_key.split(".")
    node = data
    for part in parts[:-1]:
        node = node.setdefault(part, {})
    node[parts[-1]] = value


def load_settings(defaults_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build Settings from a defaults file plus environment overrides.

    Args:
        defaults_path: YAML defaults file (default: packaged defaults.yml)
        environ: Environment mapping (default: os.environ)

    Returns:
        Settings instance

    Raises:
        ValueError: If an override cannot be cast to its expected type
    """
    env = os.environ if environ is None else environ
    raw = _load_yaml(defaults_path or DEFAULTS_PATH)

    for env_var, dotted_key, caster in _ENV_OVERRIDES:
        value = env.get(env_var)
        if value is None or value == "":
            continue
        try:
            _set_dotted(raw, dotted_key, caster(value))
        except ValueError as e:
            raise ValueError(f"Invalid value for {env_var}: {value!r}") from e

    ledger = raw.get("ledger", {})
    google = raw.get("google", {})
    fcm = raw.get("fcm", {})

    return Settings(
        external_timeout_seconds=float(raw.get("external_timeout_seconds", 10.0)),
        token_refresh_margin_minutes=int(raw.get("token_refresh_margin_minutes", 5)),
        ledger_folder_name=ledger.get("folder_name", Settings.ledger_folder_name),
        share_folder_with_owner=bool(ledger.get("share_folder_with_owner", True)),
        drive_base_url=google.get("drive_base_url", Settings.drive_base_url),
        sheets_base_url=google.get("sheets_base_url", Settings.sheets_base_url),
        google_token_uri=google.get("token_uri", Settings.google_token_uri),
        google_service_account_file=google.get("service_account_file"),
        google_scopes=list(google.get("scopes", [])),
        google_client_id=env.get("GOOGLE_CLIENT_ID"),
        google_client_secret=env.get("GOOGLE_CLIENT_SECRET"),
        fcm_base_url=fcm.get("base_url", Settings.fcm_base_url),
        fcm_scopes=list(fcm.get("scopes", [])),
        firebase_project_id=env.get("FIREBASE_PROJECT_ID"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings singleton."""
    return load_settings()
