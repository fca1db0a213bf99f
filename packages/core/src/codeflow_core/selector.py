"""The set of fixes a user has chosen, scoped to one review result."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codeflow_core.errors import InputError

if TYPE_CHECKING:
    from codeflow_core.models import ReviewResult


class FixSelector:
    """Ordered selection of ids drawn from the current result.

    Insertion order is kept because it is the order fixes are applied in.
    Binding a new result always empties the selection, even when the new
    result reuses ids from the previous one.
    """

    def __init__(self, result: ReviewResult | None = None):
        self._result = result
        self._valid_ids: set[str] = result.ids() if result else set()
        self._selected: dict[str, None] = {}

    @property
    def selection(self) -> tuple[str, ...]:
        return tuple(self._selected)

    def __contains__(self, fix_id: str) -> bool:
        return fix_id in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def bind(self, result: ReviewResult | None) -> None:
        self._result = result
        self._valid_ids = result.ids() if result else set()
        self._selected.clear()

    def toggle(self, fix_id: str) -> bool:
        """Flip fix_id in or out of the selection; return whether it is now selected."""
        if fix_id not in self._valid_ids:
            raise InputError("unknown_fix", fix_id=fix_id)
        if fix_id in self._selected:
            del self._selected[fix_id]
            return False
        self._selected[fix_id] = None
        return True

    def select_all(self) -> None:
        if self._result is None:
            return
        for change in self._result.proposed_changes:
            self._selected.setdefault(change.id, None)

    def clear(self) -> None:
        self._selected.clear()
