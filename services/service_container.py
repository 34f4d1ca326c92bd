"""
ServiceContainer - Composition root cho selection + token estimation services.

Tap trung viec khoi tao va quan ly lifecycle cua cac services
tai mot diem duy nhat.

Su dung:
    container = ServiceContainer()
    container.selections.add_selection("src/lib.rs", (5, 10))
    summary = container.summarize()

Design decisions:
- Engine so huu FingerprintCache rieng; TokenizerRegistry duoc inject
  (mac dinh la registry dung chung cua process)
- Tests tao container moi cho moi test de co boundary sach
"""

from pathlib import Path
from typing import Any, Optional

from config.app_settings import AppSettings
from config.model_config import TokenModel
from core.logging_config import flush_logs, log_info
from core.selection.types import BundleSummary
from core.tokenization.registry import TokenizerRegistry
from services.file_watcher_pkg import CacheInvalidationWatcher
from services.selection_store import SelectionStore
from services.settings_manager import load_app_settings
from services.token_estimation_service import TokenEstimationEngine


class ServiceContainer:
    """
    Composition root - single point of control cho service lifecycle.

    So huu: SelectionStore, TokenEstimationEngine, CacheInvalidationWatcher
    Tham chieu: TokenizerRegistry (inject hoac singleton cua process)
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        registry: Optional[TokenizerRegistry] = None,
    ) -> None:
        """
        Khoi tao tat ca services.

        Args:
            settings: AppSettings (None = load tu settings.json)
            registry: TokenizerRegistry (None = singleton cua process)
        """
        self.settings = settings if settings is not None else load_app_settings()
        self.engine = TokenEstimationEngine.from_settings(self.settings, registry=registry)
        self.selections = SelectionStore()
        self.watcher = CacheInvalidationWatcher()

        log_info(f"[ServiceContainer] Initialized (model={self.engine.model})")

    def summarize(self) -> Optional[BundleSummary]:
        """Token summary cho selections hien tai, None neu rong."""
        return self.selections.summarize_tokens(self.engine)

    def set_model(self, model_id: str) -> TokenModel:
        """
        Doi model mac dinh cua engine.

        Raises:
            TokenModelParseError: Neu model id khong hop le
        """
        model = TokenModel.parse(model_id)
        self.engine.set_model(model)
        self.settings.model_id = model.as_str()
        return model

    def watch(self, root: Path) -> bool:
        """
        Bat dau invalidate cache khi file trong root thay doi.

        Returns:
            True neu watcher dang chay
        """
        self.watcher.start(root, self.engine)
        return self.watcher.is_running()

    def shutdown(self) -> None:
        self.watcher.stop()
        flush_logs()

    def get_health_report(self) -> dict[str, Any]:
        """
        Health report cua cac services, huu ich cho debugging.

        Returns:
            Dict chua model, cache size, so selections, watcher state
        """
        return {
            "model": self.engine.model.as_str(),
            "token_budget": self.engine.token_budget,
            "cache_entries": self.engine.cache_size(),
            "selections": len(self.selections),
            "watching": str(self.watcher.current_path) if self.watcher.is_running() else None,
        }
