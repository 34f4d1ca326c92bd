"""
Encoder Registry - Provider cho TokenizerRegistry dung chung trong process.

Exact tokenizers ton kem de khoi tao nen chi co MOT TokenizerRegistry
cho toan bo process. Engine nhan registry qua constructor (injectable);
neu khong truyen vao se dung instance o day.

Functions:
- get_tokenizer_registry(): Lay TokenizerRegistry singleton
- reset_tokenizer_registry(): Bo singleton (dung trong tests)
"""

import threading
from typing import Optional

from core.tokenization.registry import TokenizerRegistry

_registry_instance: Optional[TokenizerRegistry] = None
_registry_lock = threading.Lock()


def get_tokenizer_registry() -> TokenizerRegistry:
    """
    Lay TokenizerRegistry singleton instance.

    Thread-safe lazy initialization.

    Returns:
        TokenizerRegistry dung chung
    """
    global _registry_instance
    if _registry_instance is not None:
        return _registry_instance

    with _registry_lock:
        if _registry_instance is None:
            _registry_instance = TokenizerRegistry()
        return _registry_instance


def reset_tokenizer_registry() -> None:
    """
    Bo registry singleton hien tai.

    Lan goi get_tokenizer_registry() tiep theo se tao instance moi.
    """
    global _registry_instance
    with _registry_lock:
        _registry_instance = None
