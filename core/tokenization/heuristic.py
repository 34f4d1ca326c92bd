"""
Heuristic token estimator - dung khi khong co exact tokenizer cho model.

Quy tac:
- Text rong hoac chi co whitespace -> 0 tokens
- Nguoc lai: max(ceil(chars / chars_per_token), ceil(words * tokens_per_word))
- Source code (theo extension) nhan them code_token_multiplier
- Ket qua luon >= 1

Day la uoc luong, khong chinh xac 100% so voi tokenizer that.
"""

import math
from dataclasses import dataclass
from pathlib import PurePath
from typing import FrozenSet

from config.model_config import TokenModel

CODE_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        "rs", "ts", "js", "jsx", "tsx", "py", "java", "c", "cpp", "cc", "h",
        "hpp", "go", "rb", "php", "cs", "swift", "scala", "kt", "sh", "zsh",
        "fish",
    }
)


def is_probably_code(path: str) -> bool:
    """Kiem tra file co phai source code khong (dua tren extension)."""
    suffix = PurePath(path).suffix
    return bool(suffix) and suffix[1:] in CODE_EXTENSIONS


def count_words(text: str) -> int:
    return len(text.split())


@dataclass(frozen=True)
class HeuristicConfig:
    """
    Tham so cho heuristic estimator.

    Attributes:
        default_chars_per_token: So ky tu trung binh / token cho text thuong
        anthropic_chars_per_token: Anthropic tokenizer encode day hon
        tokens_per_word: Chong under-count khi text gom nhieu tu ngan
        code_token_multiplier: He so nhan cho source code
    """

    default_chars_per_token: float = 4.0
    anthropic_chars_per_token: float = 3.2
    tokens_per_word: float = 1.0
    code_token_multiplier: float = 1.25

    def __post_init__(self) -> None:
        for name in (
            "default_chars_per_token",
            "anthropic_chars_per_token",
            "code_token_multiplier",
        ):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value!r}")
        if not self.tokens_per_word >= 0:
            raise ValueError(f"tokens_per_word must be >= 0, got {self.tokens_per_word!r}")

    def chars_per_token_for(self, model: TokenModel) -> float:
        if model.is_anthropic:
            return self.anthropic_chars_per_token
        return self.default_chars_per_token


class HeuristicEstimator:
    """Deterministic character/word based token estimator."""

    def __init__(self, config: HeuristicConfig = HeuristicConfig()) -> None:
        self._config = config

    @property
    def config(self) -> HeuristicConfig:
        return self._config

    def estimate(self, text: str, model: TokenModel, is_code: bool = False) -> int:
        """
        Uoc luong so token cho text.

        Args:
            text: Text can uoc luong
            model: Model dich (anh huong chars_per_token)
            is_code: True neu text la source code

        Returns:
            So token uoc luong (0 cho text rong/whitespace)
        """
        if not text.strip():
            return 0

        chars = len(text)
        words = count_words(text)
        char_based = math.ceil(chars / self._config.chars_per_token_for(model))
        word_based = math.ceil(words * self._config.tokens_per_word)
        estimate = max(char_based, word_based)
        if is_code:
            estimate = math.ceil(estimate * self._config.code_token_multiplier)
        return max(1, estimate)

    def estimate_for_path(self, text: str, model: TokenModel, path: str) -> int:
        return self.estimate(text, model, is_probably_code(path))
