"""
ITokenEstimationService - Interface cho token estimation engine.

Dinh nghia contract ma moi engine phai tuan theo.
Cho phep dependency injection va testability (mock/stub).

Methods:
- estimate_bundle(): Dem token cho ca Bundle (abort neu co file loi)
- set_model(): Doi model mac dinh (clear cache neu khac)
- set_token_budget(): Cap nhat budget (khong anh huong cache)
- set_heuristics(): Thay heuristic parameters (clear cache)
- invalidate_path(): Xoa cache cua mot file
"""

from abc import ABC, abstractmethod

from config.model_config import TokenModel
from core.selection.types import Bundle, BundleSummary
from core.tokenization.heuristic import HeuristicConfig


class ITokenEstimationService(ABC):
    """
    Interface cho token estimation.

    Moi implementation phai dam bao:
    - Thread-safe cho cache va tokenizer dung chung
    - Khong tra ve summary mot phan khi co file khong doc duoc
    - Fallback im lang ve heuristic khi tokenizer khong kha dung
    """

    @abstractmethod
    def estimate_bundle(self, bundle: Bundle) -> BundleSummary:
        """
        Dem token cho tung item trong bundle va tong hop.

        Args:
            bundle: Items co thu tu + optional model override

        Returns:
            BundleSummary voi per-item estimates cung thu tu

        Raises:
            SelectionReadError: Neu bat ky file nao khong doc duoc
        """
        ...

    @abstractmethod
    def set_model(self, model: TokenModel) -> None:
        """Doi model mac dinh. Clear cache neu model khac model hien tai."""
        ...

    @abstractmethod
    def set_token_budget(self, budget: int) -> None:
        """Cap nhat token budget. Budget khong nam trong cache key."""
        ...

    @abstractmethod
    def set_heuristics(self, config: HeuristicConfig) -> None:
        """Thay heuristic parameters va clear cache."""
        ...

    @abstractmethod
    def invalidate_path(self, path: str) -> None:
        """
        Xoa moi cache entry cua path.

        Goi khi caller biet file da thay doi (vd: file watcher).

        Args:
            path: Duong dan file can xoa khoi cache
        """
        ...
