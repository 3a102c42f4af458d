import os
from dataclasses import dataclass
from pathlib import Path
import json
from typing import Optional


@dataclass
class AppConfig:
    database_url: str
    secret_key: str
    log_level: str
    cart_storage_key: str
    order_number_attempts: int


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def validate_log_level(value: Optional[str]) -> str:
    v = (value or "INFO").strip().upper()
    if v not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {value}")
    return v


def _load_settings_file(path: Optional[Path] = None) -> dict:
    try:
        path = path or Path(__file__).resolve().parents[1] / "data" / "settings.json"
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        pass
    return {}


def load_env(settings_path: Optional[Path] = None) -> AppConfig:
    # data/settings.json wins, environment variables are the fallback
    s = _load_settings_file(settings_path)
    database_url = s.get("DATABASE_URL") or os.getenv("DATABASE_URL", "sqlite:///data/pharmacy.db")
    secret_key = os.getenv("SECRET_KEY", "dev_secret")
    log_level = validate_log_level(s.get("LOG_LEVEL") or os.getenv("LOG_LEVEL"))
    cart_storage_key = s.get("CART_STORAGE_KEY") or "pharma-line-cart"
    attempts = int(s.get("ORDER_NUMBER_ATTEMPTS") or os.getenv("ORDER_NUMBER_ATTEMPTS") or 5)
    return AppConfig(
        database_url=database_url,
        secret_key=secret_key,
        log_level=log_level,
        cart_storage_key=cart_storage_key,
        order_number_attempts=max(1, attempts),
    )
