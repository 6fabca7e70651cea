import json
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class GroqConfig(BaseModel):
    api_key: str = ""
    base_url: str = "https://api.groq.com/openai/v1"
    default_model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.7
    max_tokens: int = 2048
    top_p: float = 0.95


class TelegramConfig(BaseModel):
    bot_name: str = "TalkMate"
    history_turns: int = 20  # user + assistant messages kept per sender
    history_ttl_seconds: int = 3600
    max_message_length: int = 4096  # Telegram hard limit per message
    max_ticket_length: int = 2000


class AdminConfig(BaseModel):
    token: str = ""  # X-Admin-Token for the admin API; empty = open (local only)
    chat_ids: list[str] = []  # Telegram chats that receive new-ticket alerts


class StorageConfig(BaseModel):
    cache_capacity: int = 1000
    access_history: int = 100
    min_accesses: int = 10
    confidence_cap: float = 0.95
    prefetch_window_ms: int = 5000
    prefetch_confidence: float = 0.7
    prediction_interval_seconds: int = 60
    cleanup_interval_seconds: int = 3600
    stale_after_seconds: int = 3600
    backup_interval_hours: int = 24
    backup_retention: int = 7


class AppConfig(BaseModel):
    groq: GroqConfig = GroqConfig()
    telegram: TelegramConfig = TelegramConfig()
    admin: AdminConfig = AdminConfig()
    storage: StorageConfig = StorageConfig()


_config_dir = Path(os.environ.get("TALKMATE_DATA_DIR", Path.home() / ".talkmate"))
_config_file = _config_dir / "config.json"

# Encrypted at rest  (dot-path: "section.field")
SENSITIVE_FIELDS: list[str] = [
    "groq.api_key",
    "admin.token",
]


def get_data_dir() -> Path:
    return _config_dir


def _map_sensitive(data: dict, fn: Callable[[str], str]) -> dict:
    for dotpath in SENSITIVE_FIELDS:
        section, field = dotpath.split(".", 1)
        if field in data.get(section, {}):
            data[section][field] = fn(data[section][field])
    return data


def _needs_migration(data: dict) -> bool:
    """True if any secret is still stored as plaintext."""
    from .crypto import is_encrypted

    for dotpath in SENSITIVE_FIELDS:
        section, field = dotpath.split(".", 1)
        value = data.get(section, {}).get(field, "")
        if value and not is_encrypted(value):
            return True
    return False


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Environment variables win over config.json (container deployments)."""
    api_key = os.environ.get("GROQ_API_KEY")
    if api_key:
        config.groq.api_key = api_key
    temperature = os.environ.get("AI_TEMPERATURE")
    if temperature:
        try:
            config.groq.temperature = float(temperature)
        except ValueError:
            logger.warning("Ignoring invalid AI_TEMPERATURE=%r", temperature)
    token = os.environ.get("TALKMATE_ADMIN_TOKEN")
    if token:
        config.admin.token = token
    admin_ids = os.environ.get("TALKMATE_ADMIN_IDS")
    if admin_ids:
        config.admin.chat_ids = [a.strip() for a in admin_ids.split(",") if a.strip()]
    return config


def _ensure_config_dir() -> None:
    _config_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> AppConfig:
    from .crypto import decrypt_value

    _ensure_config_dir()
    if _config_file.exists():
        data = json.loads(_config_file.read_text(encoding="utf-8"))

        migrate = _needs_migration(data)
        data = _map_sensitive(data, decrypt_value)
        config = AppConfig(**data)

        # Re-save with encryption on first load of a plaintext config
        if migrate:
            logger.info("Migrating config to encrypted storage")
            save_config(config)

        return _apply_env_overrides(config)
    return _apply_env_overrides(AppConfig())


def save_config(config: AppConfig) -> None:
    from .crypto import encrypt_value, set_strict_permissions

    _ensure_config_dir()
    data = json.loads(config.model_dump_json(indent=2))
    data = _map_sensitive(data, encrypt_value)
    _config_file.write_text(
        json.dumps(data, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    set_strict_permissions(_config_file)


_current_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    global _current_config
    if _current_config is None:
        _current_config = load_config()
    return _current_config

