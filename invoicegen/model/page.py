from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Tuple

from invoicegen.model.document import LineItem


@dataclass(frozen=True)
class PageDescriptor:
    """Which items (and which optional blocks) belong on one physical page.

    start_index offsets the row numbers so numbering continues across pages:
    display index = start_index + local index + 1.
    """

    items: Tuple[LineItem, ...] = field(default_factory=tuple)
    start_index: int = 0
    hide_totals: bool = False
    hide_remarks: bool = False

    @property
    def end_index(self) -> int:
        return self.start_index + len(self.items)

    def shown(self) -> "PageDescriptor":
        return replace(self, hide_totals=False, hide_remarks=False)

    def display_index(self, local_index: int) -> int:
        return self.start_index + local_index + 1
