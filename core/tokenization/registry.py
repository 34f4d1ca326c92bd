"""
TokenizerRegistry - Map TokenModel -> chien luoc dem token.

Moi model tro toi mot tokenizer family hoac None (chi dung heuristic):
- "o200k_base", "cl100k_base": tiktoken encodings
- "hf:<repo>": Hugging Face tokenizers (vd: "hf:Xenova/claude-tokenizer")

Tokenizer rat ton kem de khoi tao nen moi family chi load MOT lan
cho moi registry, duoi mot lock duy nhat. Load that bai duoc log va
ghi nho (khong thu lai), model se fallback ve heuristic.
TokenizerInitError KHONG bao gio duoc raise ra caller.

Them model moi = register(model, family), them backend moi =
register_family(family, loader). Khong can sua mot branch trung tam.
"""

import threading
from typing import TYPE_CHECKING, Callable, Dict, Optional

import tiktoken

from config.model_config import TokenModel
from core.errors import TokenizerInitError
from core.logging_config import log_error, log_info

# Hugging Face tokenizers la optional (chi can khi dung "hf:<repo>")
if TYPE_CHECKING:
    from tokenizers import Tokenizer

    HAS_TOKENIZERS = True
else:
    try:
        from tokenizers import Tokenizer

        HAS_TOKENIZERS = True
    except ImportError:
        Tokenizer = None  # Kiem tra HAS_TOKENIZERS truoc khi su dung
        HAS_TOKENIZERS = False

# "count tokens for text" strategy
TokenCounter = Callable[[str], int]
FamilyLoader = Callable[[], TokenCounter]

HF_FAMILY_PREFIX = "hf:"


def hf_family(repo: str) -> str:
    return f"{HF_FAMILY_PREFIX}{repo}"


def tiktoken_loader(encoding_name: str) -> FamilyLoader:
    """Loader cho mot tiktoken encoding (vd: "o200k_base")."""

    def load() -> TokenCounter:
        try:
            encoding = tiktoken.get_encoding(encoding_name)
        except Exception as e:
            raise TokenizerInitError(encoding_name, str(e)) from e

        def count(text: str) -> int:
            return len(encoding.encode_ordinary(text))

        return count

    return load


def hf_loader(repo: str) -> FamilyLoader:
    """Loader cho Hugging Face tokenizer tu repo id."""

    def load() -> TokenCounter:
        family = hf_family(repo)
        if not HAS_TOKENIZERS:
            raise TokenizerInitError(family, "tokenizers is not installed")
        try:
            tokenizer = Tokenizer.from_pretrained(repo)
        except Exception as e:
            raise TokenizerInitError(family, str(e)) from e

        def count(text: str) -> int:
            return len(tokenizer.encode(text, add_special_tokens=False).ids)

        return count

    return load


class TokenizerRegistry:
    """
    Registry model -> token counter, thread-safe.

    Tokenizer da load duoc chia se cho moi caller cua registry.
    """

    def __init__(self, anthropic_tokenizer_repo: Optional[str] = None) -> None:
        """
        Khoi tao registry voi cac family va model mac dinh.

        Args:
            anthropic_tokenizer_repo: HF repo thay the cl100k_base cho
                Anthropic models (None = giu cl100k_base)
        """
        self._lock = threading.Lock()
        self._loaders: Dict[str, FamilyLoader] = {
            "o200k_base": tiktoken_loader("o200k_base"),
            "cl100k_base": tiktoken_loader("cl100k_base"),
        }
        self._model_families: Dict[TokenModel, Optional[str]] = {
            model: model.tokenizer_family for model in TokenModel.all()
        }
        # family -> counter, None = load that bai
        self._loaded: Dict[str, Optional[TokenCounter]] = {}

        if anthropic_tokenizer_repo:
            self.use_anthropic_tokenizer_repo(anthropic_tokenizer_repo)

    def register_family(self, family: str, loader: FamilyLoader) -> None:
        """
        Dang ky (hoac thay the) loader cho mot tokenizer family.

        Ket qua load cu cua family (neu co) bi bo.
        """
        with self._lock:
            self._loaders[family] = loader
            self._loaded.pop(family, None)

    def register(self, model: TokenModel, family: Optional[str]) -> None:
        """Gan model voi family (None = chi dung heuristic)."""
        with self._lock:
            self._model_families[model] = family

    def use_anthropic_tokenizer_repo(self, repo: str) -> None:
        """Dung HF tokenizer tu repo cho tat ca Anthropic models."""
        family = hf_family(repo)
        with self._lock:
            self._loaders.setdefault(family, hf_loader(repo))
            for model in TokenModel.all():
                if model.is_anthropic:
                    self._model_families[model] = family

    def family_for(self, model: TokenModel) -> Optional[str]:
        with self._lock:
            return self._model_families.get(model)

    def counter_for(self, model: TokenModel) -> Optional[TokenCounter]:
        """
        Lay token counter cho model (lazy load, memoized).

        Returns:
            TokenCounter neu co exact tokenizer, None -> dung heuristic
        """
        with self._lock:
            family = self._model_families.get(model)
            if family is None:
                return None

            if family in self._loaded:
                return self._loaded[family]

            counter = self._load_family_locked(family)
            self._loaded[family] = counter
            return counter

    def is_exact(self, model: TokenModel) -> bool:
        return self.counter_for(model) is not None

    def reset(self) -> None:
        """Bo toan bo tokenizer da load. Lan goi tiep theo se load lai."""
        with self._lock:
            self._loaded.clear()
        log_info("[TokenizerRegistry] Tokenizers reset - will reload on next use")

    def _load_family_locked(self, family: str) -> Optional[TokenCounter]:
        loader = self._loaders.get(family)
        if loader is None and family.startswith(HF_FAMILY_PREFIX):
            loader = hf_loader(family[len(HF_FAMILY_PREFIX):])
            self._loaders[family] = loader

        try:
            if loader is None:
                raise TokenizerInitError(family, "no loader registered")
            counter = loader()
        except TokenizerInitError as e:
            log_error(f"[TokenizerRegistry] {e}; falling back to heuristic")
            return None
        except Exception as e:
            # Loader do caller dang ky co the raise bat ky loi nao
            error = TokenizerInitError(family, str(e))
            log_error(f"[TokenizerRegistry] {error}; falling back to heuristic")
            return None

        log_info(f"[TokenizerRegistry] Using {family} tokenizer")
        return counter
