"""Configuration loading utilities for YAML-based application settings."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from .logging_config import get_logger


logger = get_logger(__name__)
_BASE_DIR = Path(__file__).resolve().parent.parent
_CONFIG_PATH = _BASE_DIR / "config.yml"


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from YAML configuration file."""

    app_name: str
    debug: bool
    host: str
    port: int
    firebase_enabled: bool
    firebase_project_id: Optional[str]
    firebase_credentials_path: Optional[str]
    firebase_kyc_collection: str
    firebase_loans_collection: str
    firebase_trust_collection: str
    firebase_audit_collection: str
    credit_min_rate: float
    credit_max_rate: float
    credit_default_model: str
    credit_models_path: Optional[str]
    credit_score_cache_ttl_sec: int
    cors_allowed_origins: list[str]


def _to_bool(value: Any, default: bool = False) -> bool:
    """Convert value to bool with a default fallback."""
    try:
        if isinstance(value, bool):
            return value
        return value.strip().lower() in {"1", "true", "yes", "on"}
    except (AttributeError, ValueError):
        logger.warning("Invalid boolean value '%s'. Using default=%s", value, default)
        return default


def _to_int(value: Any, default: int) -> int:
    """Convert value to int with a default fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid integer value '%s'. Using default=%s", value, default)
        return default


def _to_float(value: Any, default: float) -> float:
    """Convert value to float with a default fallback."""
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid float value '%s'. Using default=%s", value, default)
        return default


def _to_list(value: Any) -> list[str]:
    """Convert list-like or comma-separated value to list[str]."""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return [item.strip() for item in str(value).split(",") if item.strip()]


def _read_config(path: Optional[Path] = None) -> dict:
    """Read and parse YAML configuration."""
    config_path = path or _CONFIG_PATH
    try:
        with config_path.open("r", encoding="utf-8") as config_file:
            config_data = yaml.safe_load(config_file) or {}
        logger.info("Configuration loaded from %s", config_path)
        return config_data
    except FileNotFoundError:
        logger.warning("Config file not found at %s. Falling back to defaults.", config_path)
        return {}
    except Exception:
        logger.exception("Failed to load config file from %s", config_path)
        return {}


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """Load and validate application settings from `config.yml`."""
    config = _read_config(path)
    app_cfg = config.get("app", {}) or {}
    firebase_cfg = config.get("firebase", {}) or {}
    credit_cfg = config.get("credit", {}) or {}
    cors_cfg = config.get("cors", {}) or {}

    app_name = str(app_cfg.get("name", "Credit Risk & KYC Engine"))
    debug = _to_bool(app_cfg.get("debug", False), False)
    host = str(app_cfg.get("host", "127.0.0.1"))
    port = _to_int(app_cfg.get("port", 8000), 8000)

    firebase_enabled = _to_bool(firebase_cfg.get("enabled", False), False)
    firebase_project_id = firebase_cfg.get("project_id")
    firebase_credentials_path = firebase_cfg.get("credentials_path")
    firebase_kyc_collection = str(firebase_cfg.get("kyc_collection", "kyc_submissions"))
    firebase_loans_collection = str(firebase_cfg.get("loans_collection", "loans"))
    firebase_trust_collection = str(firebase_cfg.get("trust_collection", "trust_profiles"))
    firebase_audit_collection = str(firebase_cfg.get("audit_collection", "audit_logs"))

    credit_min_rate = _to_float(credit_cfg.get("min_rate", 8.0), 8.0)
    credit_max_rate = _to_float(credit_cfg.get("max_rate", 18.0), 18.0)
    if credit_min_rate > credit_max_rate:
        logger.warning(
            "credit.min_rate=%s exceeds credit.max_rate=%s. Using defaults.",
            credit_min_rate,
            credit_max_rate,
        )
        credit_min_rate, credit_max_rate = 8.0, 18.0
    credit_default_model = str(credit_cfg.get("default_model", "comprehensive")).strip().lower()
    credit_models_path = credit_cfg.get("models_path")
    credit_score_cache_ttl_sec = _to_int(credit_cfg.get("score_cache_ttl_sec", 300), 300)

    cors_allowed_origins = _to_list(
        cors_cfg.get("allowed_origins", ["http://localhost:5173", "http://127.0.0.1:5173"])
    )

    return AppSettings(
        app_name=app_name,
        debug=debug,
        host=host,
        port=port,
        firebase_enabled=firebase_enabled,
        firebase_project_id=firebase_project_id,
        firebase_credentials_path=firebase_credentials_path,
        firebase_kyc_collection=firebase_kyc_collection,
        firebase_loans_collection=firebase_loans_collection,
        firebase_trust_collection=firebase_trust_collection,
        firebase_audit_collection=firebase_audit_collection,
        credit_min_rate=credit_min_rate,
        credit_max_rate=credit_max_rate,
        credit_default_model=credit_default_model,
        credit_models_path=credit_models_path,
        credit_score_cache_ttl_sec=credit_score_cache_ttl_sec,
        cors_allowed_origins=cors_allowed_origins,
    )
