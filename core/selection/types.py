"""
Selection Types - Cac kieu du lieu dung chung cho selection va token estimation.

Cung cap:
- SelectionItem: 1 vung file duoc chon (path + optional line range + note)
- Bundle: Danh sach SelectionItem co thu tu + optional model override
- ItemEstimate: Ket qua dem token cho 1 SelectionItem
- BundleSummary: Tong hop ket qua cho ca Bundle
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from config.model_config import TokenModel

# Inclusive, 1-based (start, end)
LineRange = Tuple[int, int]


@dataclass
class SelectionItem:
    """
    Mot vung file duoc chon de gui cho LLM.

    Attributes:
        path: File identifier
        range: Inclusive 1-based (start, end), None = toan bo file
        note: Ghi chu da trim, None neu rong
    """

    path: str
    range: Optional[LineRange] = None
    note: Optional[str] = None

    @property
    def is_whole_file(self) -> bool:
        return self.range is None

    def copy(self) -> "SelectionItem":
        """Snapshot doc lap voi store."""
        return replace(self)


@dataclass
class Bundle:
    """
    Don vi dau vao cho estimation va export.

    Thu tu items duoc giu nguyen (quan trong cho hien thi/export).
    """

    items: List[SelectionItem] = field(default_factory=list)
    model: Optional[str] = None


@dataclass(frozen=True)
class ItemEstimate:
    """
    Ket qua dem token cho 1 selection.

    Immutable de co the luu trong cache va chia se giua threads.
    """

    item: SelectionItem
    tokens: int
    characters: int


@dataclass(frozen=True)
class BundleSummary:
    """
    Tong hop token cho mot Bundle.

    Attributes:
        model: Model da resolve (override hoac default cua engine)
        token_budget: Budget da cau hinh (chi de hien thi)
        total_tokens: Tong tokens theo thu tu items
        total_characters: Tong so ky tu (Unicode code points)
        items: Per-item estimates, cung thu tu voi Bundle
    """

    model: TokenModel
    token_budget: int
    total_tokens: int
    total_characters: int
    items: Tuple[ItemEstimate, ...] = ()

    @property
    def remaining_tokens(self) -> int:
        """Budget con lai, am neu da vuot."""
        return self.token_budget - self.total_tokens

    @property
    def exceeds_budget(self) -> bool:
        return self.total_tokens > self.token_budget

    @property
    def context_window(self) -> int:
        return self.model.context_window
