"""
Model Configuration - Dinh nghia cac token models va context limits

Moi TokenModel mang theo:
- canonical id dung de serialize (vd: "openai:gpt-4o")
- provider label de hien thi
- context window (so tokens toi da)
- tokenizer family mac dinh (None = chi dung heuristic)

Parse khong phan biet hoa thuong va chap nhan mot so alias.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from core.errors import TokenModelParseError


class TokenModel(Enum):
    """
    Cac model ho tro token estimation.

    Value la canonical id, on dinh cho serialization.
    """

    OPENAI_GPT_4O = "openai:gpt-4o"
    OPENAI_GPT_4O_MINI = "openai:gpt-4o-mini"
    ANTHROPIC_CLAUDE_3_HAIKU = "anthropic:claude-3-haiku"
    ANTHROPIC_CLAUDE_35_SONNET = "anthropic:claude-3.5-sonnet"
    CHARACTER_FALLBACK = "fallback:characters"

    @classmethod
    def default(cls) -> "TokenModel":
        """Model mac dinh khi chua cau hinh."""
        return cls.OPENAI_GPT_4O_MINI

    @classmethod
    def all(cls) -> Tuple["TokenModel", ...]:
        """Tat ca models theo thu tu uu tien."""
        return tuple(cls)

    @classmethod
    def parse(cls, value: str) -> "TokenModel":
        """
        Parse model id tu string.

        Args:
            value: Model id (vd: "OPENAI:GPT-4O", "heuristic")

        Returns:
            TokenModel tuong ung

        Raises:
            TokenModelParseError: Neu id khong duoc nhan dien
        """
        normalized = value.strip().lower()
        model = _ALIASES.get(normalized)
        if model is None:
            try:
                model = cls(normalized)
            except ValueError:
                raise TokenModelParseError(normalized) from None
        return model

    @classmethod
    def try_parse(cls, value: Optional[str]) -> Optional["TokenModel"]:
        """Parse model id, tra ve None thay vi raise."""
        if value is None:
            return None
        try:
            return cls.parse(value)
        except TokenModelParseError:
            return None

    def as_str(self) -> str:
        return self.value

    @property
    def provider(self) -> str:
        return _MODEL_SPECS[self][0]

    @property
    def context_window(self) -> int:
        return _MODEL_SPECS[self][1]

    @property
    def tokenizer_family(self) -> Optional[str]:
        """Tokenizer family mac dinh, None neu model chi dung heuristic."""
        return _MODEL_SPECS[self][2]

    @property
    def is_anthropic(self) -> bool:
        return self.provider == "Anthropic"

    def __str__(self) -> str:
        return self.value


# model -> (provider, context window, tokenizer family)
_MODEL_SPECS: Dict[TokenModel, Tuple[str, int, Optional[str]]] = {
    TokenModel.OPENAI_GPT_4O: ("OpenAI", 128_000, "o200k_base"),
    TokenModel.OPENAI_GPT_4O_MINI: ("OpenAI", 128_000, "o200k_base"),
    TokenModel.ANTHROPIC_CLAUDE_3_HAIKU: ("Anthropic", 200_000, "cl100k_base"),
    TokenModel.ANTHROPIC_CLAUDE_35_SONNET: ("Anthropic", 200_000, "cl100k_base"),
    TokenModel.CHARACTER_FALLBACK: ("Heuristic", 120_000, None),
}

_ALIASES: Dict[str, TokenModel] = {
    "heuristic": TokenModel.CHARACTER_FALLBACK,
    "fallback": TokenModel.CHARACTER_FALLBACK,
}

DEFAULT_MODEL_ID = TokenModel.default().as_str()


def context_window(model: TokenModel) -> int:
    """Kich thuoc context window cua model."""
    return model.context_window


def get_model_options() -> List[Tuple[str, str]]:
    """
    Lay danh sach options cho model picker.

    Returns:
        List of (display_text, model_id) tuples
    """
    return [
        (
            f"{m.provider} {m.as_str()} ({_format_context_length(m.context_window)})",
            m.as_str(),
        )
        for m in TokenModel.all()
    ]


def _format_context_length(length: int) -> str:
    """Format context length cho hien thi (VD: 200k, 1M)"""
    if length >= 1000000:
        return f"{length // 1000000}M"
    elif length >= 1000:
        return f"{length // 1000}k"
    return str(length)
