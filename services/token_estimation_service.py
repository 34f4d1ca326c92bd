"""
TokenEstimationEngine - Concrete implementation cua ITokenEstimationService.

Pipeline cho moi item trong Bundle (giu nguyen thu tu):
  1. Fingerprint file (length + mtime) -> CacheKey(model, path, range, fingerprint)
  2. Cache hit -> dung lai ItemEstimate
  3. Cache miss -> doc file, cat line range, dem chars + tokens, luu cache
  4. Tong hop tokens/characters thanh BundleSummary

Fallback Strategy:
  Model khong co exact tokenizer (hoac tokenizer load that bai) -> heuristic.
  Loi doc file -> SelectionReadError, ca estimate_bundle() bi abort
  (under-report token usage te hon la fail ro rang).

Dependency Flow:
  encoder_registry -> TokenizerRegistry (shared, memoized tokenizers)
  TokenEstimationEngine -> FingerprintCache (instance scope)
                        -> HeuristicEstimator
"""

from dataclasses import replace
from typing import Optional, Set

from config.app_settings import DEFAULT_TOKEN_BUDGET, AppSettings
from config.model_config import TokenModel
from core.logging_config import log_debug, log_error, log_info, log_warning
from core.selection.types import Bundle, BundleSummary, ItemEstimate, SelectionItem
from core.tokenization.cache import CacheKey, FingerprintCache
from core.tokenization.file_reader import file_fingerprint, load_selection_text
from core.tokenization.heuristic import HeuristicConfig, HeuristicEstimator
from core.tokenization.registry import TokenizerRegistry
from services.encoder_registry import get_tokenizer_registry
from services.interfaces.token_estimation_service import ITokenEstimationService


class TokenEstimationEngine(ITokenEstimationService):
    """
    Token estimation voi fingerprint cache va multi-backend tokenizer dispatch.

    Cache va registry deu thread-safe; doc file va tokenize chay ngoai lock.
    """

    def __init__(
        self,
        model: Optional[TokenModel] = None,
        registry: Optional[TokenizerRegistry] = None,
        cache: Optional[FingerprintCache] = None,
        heuristics: Optional[HeuristicConfig] = None,
        token_budget: int = DEFAULT_TOKEN_BUDGET,
    ) -> None:
        """
        Khoi tao engine.

        Args:
            model: Model mac dinh (None = TokenModel.default())
            registry: TokenizerRegistry (None = registry dung chung cua process)
            cache: FingerprintCache (None = tao moi)
            heuristics: Heuristic parameters (None = defaults)
            token_budget: Budget bao cao cung summary
        """
        self._model = model or TokenModel.default()
        self._registry = registry or get_tokenizer_registry()
        self._cache = cache or FingerprintCache()
        self._heuristic = HeuristicEstimator(heuristics or HeuristicConfig())
        self._token_budget = token_budget
        self._fallback_warned: Set[TokenModel] = set()

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        registry: Optional[TokenizerRegistry] = None,
    ) -> "TokenEstimationEngine":
        """
        Tao engine tu AppSettings.

        Model id khong hop le -> dung TokenModel.default().
        """
        model = TokenModel.try_parse(settings.model_id)
        if model is None:
            log_warning(
                f"[TokenEstimation] Unknown model '{settings.model_id}', "
                f"using {TokenModel.default()}"
            )
            model = TokenModel.default()

        repo = settings.anthropic_tokenizer_repo
        if registry is None:
            # Registry dung chung khong bi sua: repo rieng -> registry rieng
            registry = (
                TokenizerRegistry(anthropic_tokenizer_repo=repo)
                if repo
                else get_tokenizer_registry()
            )
        elif repo:
            registry.use_anthropic_tokenizer_repo(repo)

        return cls(
            model=model,
            registry=registry,
            heuristics=settings.heuristic_config(),
            token_budget=settings.token_budget,
        )

    # ================================================================
    # Configuration
    # ================================================================

    @property
    def model(self) -> TokenModel:
        return self._model

    @property
    def token_budget(self) -> int:
        return self._token_budget

    @property
    def heuristics(self) -> HeuristicConfig:
        return self._heuristic.config

    @property
    def registry(self) -> TokenizerRegistry:
        return self._registry

    def set_model(self, model: TokenModel) -> None:
        if model == self._model:
            return
        self._cache.clear()
        self._model = model
        log_info(f"[TokenEstimation] Model changed to {model}, cache cleared")

    def set_token_budget(self, budget: int) -> None:
        self._token_budget = budget

    def set_heuristics(self, config: HeuristicConfig) -> None:
        self._heuristic = HeuristicEstimator(config)
        self._cache.clear()
        log_info("[TokenEstimation] Heuristics updated, cache cleared")

    def invalidate_path(self, path: str) -> None:
        removed = self._cache.invalidate_path(str(path))
        log_debug(f"[TokenEstimation] Invalidated {removed} entries for {path}")

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_size(self) -> int:
        return len(self._cache)

    # ================================================================
    # Estimation
    # ================================================================

    def estimate_bundle(self, bundle: Bundle) -> BundleSummary:
        model = self._resolve_model(bundle.model)

        estimates = []
        total_tokens = 0
        total_characters = 0
        for item in bundle.items:
            estimate = self._estimate_item(model, item)
            total_tokens += estimate.tokens
            total_characters += estimate.characters
            estimates.append(estimate)

        return BundleSummary(
            model=model,
            token_budget=self._token_budget,
            total_tokens=total_tokens,
            total_characters=total_characters,
            items=tuple(estimates),
        )

    def estimate_text(
        self,
        text: str,
        model: Optional[TokenModel] = None,
        path: Optional[str] = None,
    ) -> int:
        """
        Dem token cho mot doan text (khong cache).

        Args:
            text: Text can dem
            model: Model dich (None = model cua engine)
            path: Optional file path, dung de nhan dien source code
                  cho heuristic

        Returns:
            So token
        """
        return self._count_tokens(model or self._model, path or "", text)

    def _resolve_model(self, override: Optional[str]) -> TokenModel:
        if override is None:
            return self._model
        model = TokenModel.try_parse(override)
        if model is None:
            log_debug(f"[TokenEstimation] Ignoring unknown model override '{override}'")
            return self._model
        return model

    def _estimate_item(self, model: TokenModel, item: SelectionItem) -> ItemEstimate:
        fingerprint = file_fingerprint(item.path)
        key = CacheKey(model, item.path, item.range, fingerprint)

        # Khong co fingerprint -> khong dung cache, de read_text() bao loi
        if fingerprint is not None:
            cached = self._cache.get(key)
            if cached is not None:
                if cached.item == item:
                    return cached
                # Note khong nam trong key -> bao cao note hien tai
                return replace(cached, item=item.copy())

        contents = load_selection_text(item)
        estimate = ItemEstimate(
            item=item.copy(),
            tokens=self._count_tokens(model, item.path, contents),
            characters=len(contents),
        )

        if fingerprint is not None:
            self._cache.put(key, estimate)
        return estimate

    def _count_tokens(self, model: TokenModel, path: str, contents: str) -> int:
        if not contents.strip():
            return 0

        counter = self._registry.counter_for(model)
        if counter is not None:
            try:
                return counter(contents)
            except Exception as e:
                log_error(f"[TokenEstimation] Tokenizer failed for {model}", e)
        elif self._registry.family_for(model) is not None:
            self._warn_fallback(model)

        return self._heuristic.estimate_for_path(contents, model, path)

    def _warn_fallback(self, model: TokenModel) -> None:
        if model in self._fallback_warned:
            return
        self._fallback_warned.add(model)
        log_warning(
            f"[TokenEstimation] Exact tokenizer unavailable for {model}, "
            f"using heuristic estimate"
        )
