"""
Config Package - Chua cac constants va cau hinh cua ung dung

Bao gom:
- model_config: Dinh nghia cac token models va context limits
- app_settings: Typed settings cho token estimation
"""

from config.model_config import (
    TokenModel,
    DEFAULT_MODEL_ID,
    context_window,
    get_model_options,
)

__all__ = [
    "TokenModel",
    "DEFAULT_MODEL_ID",
    "context_window",
    "get_model_options",
]
