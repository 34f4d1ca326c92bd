"""
Error taxonomy cho selection store va token estimation.

- TokenModelParseError: model id khong hop le (recoverable, caller dung default)
- SelectionReadError: file khong doc duoc trong luc estimate (abort ca bundle)
- TokenizerInitError: tokenizer khong load duoc (registry tu fallback ve heuristic)
"""

from typing import Optional


class LlmCtxError(Exception):
    """Base exception cho llmctx."""


class TokenModelParseError(LlmCtxError, ValueError):
    """Unknown token model identifier."""

    def __init__(self, value: str):
        super().__init__(f"unknown token model '{value}'")
        self.value = value


class SelectionReadError(LlmCtxError, OSError):
    """A selected file could not be read during estimation."""

    def __init__(self, path: str, reason: Optional[str] = None):
        message = f"failed to read selection '{path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        return self.args[0]


class TokenizerInitError(LlmCtxError):
    """An exact tokenizer family failed to construct."""

    def __init__(self, family: str, reason: str):
        super().__init__(f"failed to initialize tokenizer '{family}': {reason}")
        self.family = family
