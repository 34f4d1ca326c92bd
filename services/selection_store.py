"""
SelectionStore - Quan ly tap selections (file + optional line range) co thu tu.

Invariants:
- Moi (path, range) chi co toi da 1 entry
- Moi path chi co toi da 1 whole-file entry, va khi co thi no thay the
  moi ranged entries cua path do
- Ranged entries cung path overlap hoac cham nhau duoc merge thanh 1
- Ranges luon duoc normalize: 1 <= start <= end

Mutations khong bao gio raise khi khong tim thay entry: tra ve False.

Thread Safety: Chi goi tu mot caller (command loop). No internal locking.
"""

import os
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

from core.selection.ranges import (
    clean_note,
    normalize_range,
    ranges_mergeable,
    union_range,
)
from core.selection.types import Bundle, BundleSummary, LineRange, SelectionItem
from services.interfaces.token_estimation_service import ITokenEstimationService

PathLike = Union[str, "os.PathLike[str]"]
SelectionCallback = Callable[[Tuple[SelectionItem, ...]], None]


def _path_key(path: PathLike) -> str:
    """Normalize path: "./src/x.py" va "src/x.py" cho cung mot key."""
    return os.path.normpath(os.fspath(path))


class SelectionStore:
    """
    Ordered, deduplicated, merged selection set.

    Callback on_selection_changed duoc goi SAU moi mutation co thay doi
    voi snapshot cua items.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        on_selection_changed: Optional[SelectionCallback] = None,
    ) -> None:
        """
        Khoi tao SelectionStore.

        Args:
            model: Model id mac dinh cho bundles (None = de engine quyet dinh)
            on_selection_changed: Callback(items) goi khi selection doi
        """
        self._items: List[SelectionItem] = []
        self._model: Optional[str] = model
        self._on_selection_changed = on_selection_changed

    # === Read access ===

    @property
    def items(self) -> Tuple[SelectionItem, ...]:
        """Snapshot cua items hien tai."""
        return tuple(item.copy() for item in self._items)

    @property
    def model(self) -> Optional[str]:
        return self._model

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[SelectionItem]:
        return iter(self.items)

    def is_empty(self) -> bool:
        return not self._items

    def selections_for(self, path: PathLike) -> List[SelectionItem]:
        """Entries cua mot path, theo thu tu trong store."""
        key = _path_key(path)
        return [item.copy() for item in self._items if item.path == key]

    # === Model override ===

    def set_model(self, model: str) -> None:
        self._model = model

    def clear_model(self) -> None:
        self._model = None

    # === Mutations ===

    def add_selection(
        self,
        path: PathLike,
        range: Optional[LineRange] = None,
        note: Optional[str] = None,
    ) -> SelectionItem:
        """
        Them hoac merge mot selection.

        - range None: thay the moi entry cua path bang 1 whole-file entry
        - range co gia tri: merge voi cac ranged entries overlap/touch;
          bi bo qua neu path da co whole-file entry

        Args:
            path: File identifier
            range: Inclusive 1-based (start, end), co the dao nguoc
            note: Ghi chu (duoc trim, rong -> None)

        Returns:
            Snapshot cua entry ket qua
        """
        item = SelectionItem(
            path=_path_key(path),
            range=normalize_range(range) if range is not None else None,
            note=clean_note(note),
        )

        if item.range is None:
            result = self._insert_whole_file(item)
        else:
            result = self._insert_range(item, item.range)

        self._notify_changed()
        return result.copy()

    def remove_selection(self, path: PathLike, range: Optional[LineRange] = None) -> bool:
        """
        Xoa selection.

        Args:
            path: File identifier
            range: None = xoa moi entry cua path, nguoc lai chi xoa exact match

        Returns:
            True neu co entry bi xoa
        """
        key = _path_key(path)
        before = len(self._items)

        if range is None:
            self._items = [item for item in self._items if item.path != key]
        else:
            target = normalize_range(range)
            self._items = [
                item
                for item in self._items
                if not (item.path == key and item.range == target)
            ]

        changed = len(self._items) != before
        if changed:
            self._notify_changed()
        return changed

    def set_note(
        self,
        path: PathLike,
        range: Optional[LineRange] = None,
        note: Optional[str] = None,
    ) -> bool:
        """
        Ghi de note cua exact match (whole-file neu range None).

        Returns:
            True neu tim thay entry
        """
        key = _path_key(path)
        target = normalize_range(range) if range is not None else None

        for item in self._items:
            if item.path == key and item.range == target:
                item.note = clean_note(note)
                self._notify_changed()
                return True
        return False

    def clear(self) -> None:
        """Xoa toan bo selections va model override."""
        self._items.clear()
        self._model = None
        self._notify_changed()

    def restore(self, items: Iterable[SelectionItem]) -> None:
        """
        Thay the toan bo store bang items (vd: khi restore session).

        Moi item duoc add lai qua add_selection() nen invariants
        van duoc dam bao du input khong hop le. Model override giu nguyen.
        """
        self._items.clear()
        for item in items:
            self.add_selection(item.path, item.range, item.note)
        if not self._items:
            self._notify_changed()

    # === Bundles ===

    def to_bundle(self, override_model: Optional[str] = None) -> Bundle:
        """
        Snapshot thanh Bundle.

        Model: override_model, sau do model cua store, cuoi cung None.
        """
        return Bundle(
            items=[item.copy() for item in self._items],
            model=override_model if override_model is not None else self._model,
        )

    def summarize_tokens(
        self, engine: ITokenEstimationService
    ) -> Optional[BundleSummary]:
        """
        Dem token cho bundle hien tai.

        Returns:
            None neu store rong, nguoc lai BundleSummary

        Raises:
            SelectionReadError: Neu co file khong doc duoc
        """
        if not self._items:
            return None
        return engine.estimate_bundle(self.to_bundle())

    # === Internal ===

    def _insert_whole_file(self, item: SelectionItem) -> SelectionItem:
        insert_at: Optional[int] = None
        inherited_note = item.note

        remaining: List[SelectionItem] = []
        for existing in self._items:
            if existing.path != item.path:
                remaining.append(existing)
                continue
            if insert_at is None:
                insert_at = len(remaining)
            if inherited_note is None:
                inherited_note = existing.note

        item.note = inherited_note
        self._items = remaining
        self._items.insert(insert_at if insert_at is not None else len(remaining), item)
        return item

    def _insert_range(self, item: SelectionItem, range_: LineRange) -> SelectionItem:
        same_path = [
            idx for idx, existing in enumerate(self._items) if existing.path == item.path
        ]

        for idx in same_path:
            existing = self._items[idx]
            if existing.range is None:
                if item.note is not None:
                    existing.note = item.note
                return existing

        # Merge den khi on dinh: range lon dan co the cham them entries khac
        merged: List[int] = []
        grew = True
        while grew:
            grew = False
            for idx in same_path:
                if idx in merged:
                    continue
                other = self._items[idx].range
                if other is not None and ranges_mergeable(range_, other):
                    range_ = union_range(range_, other)
                    merged.append(idx)
                    grew = True

        if item.note is None:
            for idx in sorted(merged):
                if self._items[idx].note is not None:
                    item.note = self._items[idx].note
                    break

        merged_set = set(merged)
        self._items = [
            existing for idx, existing in enumerate(self._items) if idx not in merged_set
        ]
        item.range = range_

        self._items.insert(self._insert_position(item.path, range_), item)
        return item

    def _insert_position(self, path: str, range_: LineRange) -> int:
        last_same_path: Optional[int] = None
        for idx, existing in enumerate(self._items):
            if existing.path != path:
                continue
            if existing.range is not None and existing.range[0] > range_[1]:
                return idx
            last_same_path = idx
        if last_same_path is not None:
            return last_same_path + 1
        return len(self._items)

    def _notify_changed(self) -> None:
        if self._on_selection_changed is not None:
            self._on_selection_changed(self.items)
