"""
Shared fixtures cho unit va integration tests.

Registry trong tests khong tai tokenizer tu network:
- heuristic_registry: moi model dung heuristic
- word_registry: moi exact family dem 1 token / whitespace-separated word
"""

import pytest

from config.model_config import TokenModel
from core.tokenization.registry import TokenizerRegistry


def _word_counter(text: str) -> int:
    return len(text.split())


@pytest.fixture
def heuristic_registry() -> TokenizerRegistry:
    registry = TokenizerRegistry()
    for model in TokenModel.all():
        registry.register(model, None)
    return registry


@pytest.fixture
def word_registry() -> TokenizerRegistry:
    registry = TokenizerRegistry()
    registry.register_family("o200k_base", lambda: _word_counter)
    registry.register_family("cl100k_base", lambda: _word_counter)
    return registry


@pytest.fixture
def write_file(tmp_path):
    """Tao file trong tmp_path va tra ve path string."""

    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write
