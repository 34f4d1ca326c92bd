"""
AppSettings - Typed settings dataclass cho llmctx.

Modules:
- AppSettings: Dataclass chua toan bo settings lien quan den token estimation
- from_dict(): Tao AppSettings tu dict (settings.json)
- to_dict(): Chuyen doi AppSettings thanh dict de luu xuong file

Su dung:
    settings = load_app_settings()
    engine = TokenEstimationEngine.from_settings(settings)
"""

import typing
from dataclasses import dataclass
from typing import Any, Optional

from config.model_config import DEFAULT_MODEL_ID
from core.tokenization.heuristic import HeuristicConfig

DEFAULT_TOKEN_BUDGET = 120_000

# Numeric fields phai > 0 (dung lam so chia / he so nhan)
_POSITIVE_FIELDS = frozenset(
    {"default_chars_per_token", "anthropic_chars_per_token", "code_token_multiplier"}
)
# Numeric fields phai >= 0
_NON_NEGATIVE_FIELDS = frozenset({"tokens_per_word", "token_budget"})


@dataclass
class AppSettings:
    """
    Typed settings cho llmctx.

    Moi field tuong ung voi mot key trong settings.json.
    Default values duoc su dung khi settings.json chua co key tuong ung.
    """

    # --- Token Estimation ---
    # Model id dang su dung (vd: "openai:gpt-4o-mini")
    model_id: str = DEFAULT_MODEL_ID
    # Token budget hien thi cung summary (khong anh huong ket qua dem)
    token_budget: int = DEFAULT_TOKEN_BUDGET

    # --- Heuristic Parameters ---
    default_chars_per_token: float = 4.0
    anthropic_chars_per_token: float = 3.2
    tokens_per_word: float = 1.0
    code_token_multiplier: float = 1.25

    # --- Tokenizer ---
    # HF repo cho Anthropic models (vd: "Xenova/claude-tokenizer").
    # None = dung tiktoken cl100k_base
    anthropic_tokenizer_repo: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        """
        Tao AppSettings tu dict, chi lay cac keys trung voi field names.

        Value co type khong khop voi field declaration (hoac so am,
        chars_per_token / multiplier <= 0) bi bo qua
        va dung default thay the.

        Args:
            data: Dict settings (thuong tu settings.json)

        Returns:
            AppSettings instance voi values tu dict, fallback ve defaults
        """
        field_types = typing.get_type_hints(cls)

        filtered: dict[str, Any] = {}
        for key, value in data.items():
            if key not in field_types:
                continue

            expected_type = field_types[key]

            # isinstance(True, int) == True, nhung bool khong phai so hop le
            if isinstance(value, bool) and expected_type in (int, float):
                continue

            # Optional[str] -> (str, NoneType)
            args = typing.get_args(expected_type)
            if args:
                if isinstance(value, args):
                    filtered[key] = value
                continue

            if expected_type is float and isinstance(value, int):
                value = float(value)
            elif not isinstance(value, expected_type):
                continue

            if not _in_range(key, value):
                continue
            filtered[key] = value

        return cls(**filtered)

    def to_dict(self) -> dict[str, Any]:
        """Chuyen doi AppSettings thanh dict de luu xuong file."""
        return {
            "model_id": self.model_id,
            "token_budget": self.token_budget,
            "default_chars_per_token": self.default_chars_per_token,
            "anthropic_chars_per_token": self.anthropic_chars_per_token,
            "tokens_per_word": self.tokens_per_word,
            "code_token_multiplier": self.code_token_multiplier,
            "anthropic_tokenizer_repo": self.anthropic_tokenizer_repo,
        }

    def heuristic_config(self) -> HeuristicConfig:
        """Build HeuristicConfig tu cac heuristic fields."""
        return HeuristicConfig(
            default_chars_per_token=self.default_chars_per_token,
            anthropic_chars_per_token=self.anthropic_chars_per_token,
            tokens_per_word=self.tokens_per_word,
            code_token_multiplier=self.code_token_multiplier,
        )


def _in_range(key: str, value: Any) -> bool:
    if key in _POSITIVE_FIELDS:
        return value > 0
    if key in _NON_NEGATIVE_FIELDS:
        return value >= 0
    return True
