"""
Settings Manager - Quan ly load/save settings cua ung dung.

File: ~/.llmctx/settings.json

API:
    settings = load_app_settings()  # -> AppSettings
    save_app_settings(settings)
    update_app_setting(model_id="openai:gpt-4o")

File khong ton tai hoac hong -> dung defaults.
Keys la trong file duoc giu nguyen khi save.
"""

import json
import threading
from typing import Any

from config.app_settings import AppSettings
from config.paths import SETTINGS_FILE
from core.logging_config import log_warning

# Thread-safe lock de tranh race condition khi save settings
_settings_lock = threading.Lock()


def _read_settings_file() -> dict[str, Any]:
    if not SETTINGS_FILE.exists():
        return {}
    try:
        data = json.loads(SETTINGS_FILE.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log_warning(f"[Settings] Could not read {SETTINGS_FILE}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _save_app_settings_unlocked(settings: AppSettings) -> bool:
    """
    Save AppSettings ra file KHONG co lock.

    Chi duoc goi tu ben trong code da acquire _settings_lock.
    Merge voi existing data de bao toan extra keys.

    Returns:
        True neu save thanh cong
    """
    updated = {**_read_settings_file(), **settings.to_dict()}
    try:
        SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
        SETTINGS_FILE.write_text(json.dumps(updated, indent=2), encoding="utf-8")
        return True
    except OSError as e:
        log_warning(f"[Settings] Could not write {SETTINGS_FILE}: {e}")
        return False


def load_app_settings() -> AppSettings:
    """
    Load settings tu file va tra ve AppSettings typed instance.

    Returns:
        AppSettings instance voi values tu file + defaults
    """
    return AppSettings.from_dict(_read_settings_file())


def save_app_settings(settings: AppSettings) -> bool:
    """
    Save AppSettings ra file (thread-safe).

    Returns:
        True neu save thanh cong
    """
    with _settings_lock:
        return _save_app_settings_unlocked(settings)


def update_app_setting(**kwargs: Any) -> bool:
    """
    Update mot hoac nhieu settings (atomic read-modify-write).

    Args:
        **kwargs: Field names va values can update (vd: token_budget=42000)

    Returns:
        True neu save thanh cong

    Raises:
        TypeError: Neu key khong phai la AppSettings field
    """
    valid_fields = set(AppSettings.__dataclass_fields__)
    for key in kwargs:
        if key not in valid_fields:
            raise TypeError(
                f"'{key}' is not a valid AppSettings field. "
                f"Valid fields: {sorted(valid_fields)}"
            )

    with _settings_lock:
        settings = AppSettings.from_dict({**_read_settings_file(), **kwargs})
        return _save_app_settings_unlocked(settings)
