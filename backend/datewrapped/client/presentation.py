"""
Table and card views over the row editor

Purely presentational: both views are re-derived from the editor's rows on
every call and never touch persisted state except through the editor.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from datewrapped.api.schemas.entry import SELECT_OPTIONS
from datewrapped.client.row_editor import Row, RowEditor
from datewrapped.core.errors import DatingWrappedError


@dataclass(frozen=True)
class Column:
    field: str
    header: str
    widget: str  # text | number | select | stars | tags | textarea
    size: int
    min_size: int
    max_size: int
    stars: int = 0

    @property
    def options(self) -> Tuple[str, ...]:
        return SELECT_OPTIONS.get(self.field, ())


COLUMNS: List[Column] = [
    Column("person_name", "Name", "text", 200, 100, 500),
    Column("age", "Age", "number", 80, 60, 150),
    Column("occupation", "Occupation", "text", 180, 100, 300),
    Column("relationship_status", "Relationship Status", "select", 180, 120, 300),
    Column("platform", "Platform", "select", 150, 100, 250),
    Column("num_dates", "# of Dates", "number", 80, 60, 150),
    Column("total_cost", "Total Cost ($)", "number", 100, 80, 200),
    Column("avg_duration", "Avg Duration (hrs)", "number", 100, 80, 200),
    Column("hotness", "Hotness", "stars", 120, 80, 200, stars=10),
    Column("rating", "Rating", "stars", 120, 80, 200, stars=5),
    Column("outcome", "Outcome", "select", 150, 100, 250),
    Column("status", "Status", "select", 120, 80, 200),
    Column("red_flags", "Red Flags", "tags", 200, 120, 400),
    Column("green_flags", "Green Flags", "tags", 200, 120, 400),
    Column("notes", "Notes", "textarea", 250, 150, 500),
]

COLUMNS_BY_FIELD: Dict[str, Column] = {c.field: c for c in COLUMNS}


def fuzzy_match(value: Optional[str], term: Optional[str]) -> bool:
    """
    Name filter used by the table search box.

    Matches on substring, then on the term's characters appearing in order,
    then (terms longer than 2 chars) on the term with any one character
    dropped.
    """
    term = (term or "").strip().lower()
    if not term:
        return True
    value = (value or "").lower()

    if term in value:
        return True

    pos = 0
    for ch in value:
        if pos < len(term) and ch == term[pos]:
            pos += 1
    if pos == len(term):
        return True

    if len(term) > 2:
        for i in range(len(term)):
            if term[:i] + term[i + 1:] in value:
                return True
    return False


def render_stars(value: Optional[int], total: int) -> str:
    filled = max(0, min(total, int(value or 0)))
    return "★" * filled + "☆" * (total - filled)


class _EditorView:
    """Edit actions shared by both views; failures end up in `error_message`"""

    def __init__(self, editor: RowEditor):
        self.editor = editor
        self._error: Optional[str] = None

    @property
    def error_message(self) -> Optional[str]:
        return self._error or self.editor.last_error

    def clear_error(self):
        self._error = None
        self.editor.last_error = None

    async def add_row(self) -> Optional[int]:
        try:
            return self.editor.add_blank()
        except DatingWrappedError as e:
            self._error = e.message
            return None

    async def edit_cell(self, index: int, field: str, value: Any) -> bool:
        """True when the edit was accepted and persisted"""
        try:
            row = await self.editor.update_field(index, field, value)
        except DatingWrappedError as e:
            self._error = e.message
            return False
        self._error = None
        return field not in row.errors

    async def delete_row(self, index: int) -> bool:
        try:
            return await self.editor.remove_at(index)
        except DatingWrappedError as e:
            self._error = e.message
            return False


class TableView(_EditorView):
    """Dense grid with a name filter and resizable columns"""

    def __init__(self, editor: RowEditor, columns: Optional[List[Column]] = None):
        super().__init__(editor)
        self.columns = list(columns or COLUMNS)
        self.column_sizes: Dict[str, int] = {c.field: c.size for c in self.columns}
        self.search = ""

    def set_filter(self, text: str):
        self.search = text or ""

    def resize_column(self, field: str, width: int) -> int:
        column = COLUMNS_BY_FIELD.get(field)
        if column is None:
            raise KeyError(field)
        width = max(column.min_size, min(column.max_size, int(width)))
        self.column_sizes[field] = width
        return width

    @property
    def total_width(self) -> int:
        return sum(self.column_sizes.values())

    def visible_rows(self) -> List[Tuple[int, Row]]:
        """(editor index, row) pairs passing the name filter"""
        return [
            (i, row)
            for i, row in enumerate(self.editor.rows)
            if fuzzy_match(row.entry.person_name, self.search)
        ]

    def render(self) -> List[Dict[str, Any]]:
        rendered = []
        for index, row in self.visible_rows():
            cells = {}
            for column in self.columns:
                value = getattr(row.entry, column.field)
                cell = {"value": value, "widget": column.widget, "width": self.column_sizes[column.field]}
                if column.widget == "stars":
                    cell["display"] = render_stars(value, column.stars)
                if column.field in row.errors:
                    cell["error"] = row.errors[column.field]
                cells[column.field] = cell
            rendered.append({
                "key": row.entry.id or f"temp-{row.key}",
                "index": index,
                "saved": row.is_saved,
                "pending": row.is_pending,
                "cells": cells,
            })
        return rendered

    @property
    def title(self) -> str:
        if self.search:
            return f'Results for "{self.search}" ({len(self.visible_rows())} entries)'
        return "Your Dating Entries"


class CardView(_EditorView):
    """One card per person"""

    def render(self) -> List[Dict[str, Any]]:
        cards = []
        for index, row in enumerate(self.editor.rows):
            entry = row.entry
            subtitle = " · ".join(part for part in (entry.platform, entry.outcome) if part)
            cards.append({
                "key": entry.id or f"temp-{row.key}",
                "index": index,
                "title": entry.person_name,
                "subtitle": subtitle,
                "occupation": entry.occupation or "",
                "age": entry.age,
                "rating": render_stars(entry.rating, 5),
                "hotness": f"{entry.hotness}/10" if entry.hotness is not None else "",
                "num_dates": entry.num_dates,
                "total_cost": entry.total_cost,
                "red_flags": list(entry.red_flags),
                "green_flags": list(entry.green_flags),
                "notes": entry.notes,
                "errors": dict(row.errors),
            })
        return cards
