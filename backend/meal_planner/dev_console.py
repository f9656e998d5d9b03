"""Dev console presenter.

:class:`LogConsole` is a live, filterable view over :data:`log_capture`.  It
only uses the capture's public contract (``get_entries`` / ``subscribe`` /
``clear``) and keeps its own view state: the entry list, the active filter and
the set of entries whose details are expanded.  :meth:`LogConsole.render`
produces a :class:`ConsoleView` that the dev-console WebSocket sends to the
browser; :meth:`LogConsole.render_text` is the same view for a terminal.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal, get_args

from pydantic import BaseModel

from meal_planner.log_capture import CLEAR_SENTINEL_ID, LEVELS, LogCapture, LogEntry, log_capture

FilterLevel = Literal["all", "log", "info", "warn", "error"]
FILTERS: tuple[FilterLevel, ...] = get_args(FilterLevel)

TITLE = "🛠 Dev Console"

LEVEL_LABELS = {"log": "LOG", "info": "INFO", "warn": "WARN", "error": "ERR"}
LEVEL_ICONS = {"log": "📝", "info": "ℹ️", "warn": "⚠️", "error": "🔴"}

# Levels that get a count badge on their filter button
BADGE_LEVELS = ("warn", "error")


class FilterButton(BaseModel):
    level: FilterLevel
    label: str
    active: bool
    badge: int | None = None


class ConsoleRow(BaseModel):
    id: int
    level: str
    label: str
    icon: str
    time: str
    message: str
    expandable: bool
    expanded: bool
    details: str | None = None  # only set while expanded


class ConsoleView(BaseModel):
    visible: bool
    title: str = TITLE
    filter: FilterLevel = "all"
    filters: list[FilterButton] = []
    rows: list[ConsoleRow] = []
    empty_message: str | None = None


class LogConsole:
    """Stateful observer of a :class:`LogCapture`.

    *on_change* is called after every state change (new entry, reset, filter,
    expand/collapse, close); *on_close* when the user closes the console.
    """

    def __init__(
        self,
        capture: LogCapture = log_capture,
        on_change: Callable[[], None] | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.capture = capture
        self.on_change = on_change
        self.on_close = on_close
        self.entries: list[LogEntry] = []
        self.filter: FilterLevel = "all"
        self.expanded_ids: set[int] = set()
        self.visible = True
        self._unsubscribe: Callable[[], None] | None = None

    # ── lifecycle ────────────────────────────────────────────────────────────

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    def mount(self) -> None:
        if self._unsubscribe is not None:
            return
        self.entries = self.capture.get_entries()
        self._unsubscribe = self.capture.subscribe(self._on_entry)

    def unmount(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def __enter__(self) -> LogConsole:
        self.mount()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unmount()

    def _on_entry(self, entry: LogEntry) -> None:
        if entry.id == CLEAR_SENTINEL_ID:
            self.entries = []
        else:
            self.entries.append(entry)
            overflow = len(self.entries) - self.capture.max_entries
            if overflow > 0:
                evicted = self.entries[:overflow]
                del self.entries[:overflow]
                self.expanded_ids.difference_update(e.id for e in evicted)
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    # ── user actions ─────────────────────────────────────────────────────────

    def set_filter(self, level: str) -> None:
        if level not in FILTERS:
            raise ValueError(f"Unknown filter: {level!r}")
        self.filter = level  # type: ignore[assignment]
        self._changed()

    def toggle_expand(self, entry_id: int) -> bool:
        """Show or hide the details of *entry_id*.  Returns whether it is now expanded.

        Entries without details are not expandable; the call is ignored.
        """
        entry = next((e for e in self.entries if e.id == entry_id), None)
        if entry is None or entry.details is None:
            return False
        if entry_id in self.expanded_ids:
            self.expanded_ids.discard(entry_id)
        else:
            self.expanded_ids.add(entry_id)
        self._changed()
        return entry_id in self.expanded_ids

    def clear(self) -> None:
        # The clear sentinel empties self.entries.
        self.expanded_ids = set()
        self.capture.clear()

    def close(self) -> None:
        self.visible = False
        self._changed()
        if self.on_close is not None:
            self.on_close()

    # ── derived state ────────────────────────────────────────────────────────

    @property
    def filtered_entries(self) -> list[LogEntry]:
        if self.filter == "all":
            return list(self.entries)
        return [e for e in self.entries if e.level == self.filter]

    @property
    def counts(self) -> dict[str, int]:
        counts = dict.fromkeys(LEVELS, 0)
        for entry in self.entries:
            counts[entry.level] += 1
        return counts

    @property
    def badges(self) -> dict[str, int]:
        counts = self.counts
        return {level: counts[level] for level in BADGE_LEVELS if counts[level] > 0}

    @property
    def empty_message(self) -> str | None:
        if self.filtered_entries:
            return None
        if self.filter == "all":
            return "No log entries."
        return f'No log entries for "{self.filter}".'

    # ── rendering ────────────────────────────────────────────────────────────

    def render(self) -> ConsoleView:
        if not self.visible:
            return ConsoleView(visible=False, filter=self.filter)

        badges = self.badges
        filters = [
            FilterButton(
                level=level,
                label="All" if level == "all" else LEVEL_LABELS[level],
                active=level == self.filter,
                badge=badges.get(level),
            )
            for level in FILTERS
        ]
        rows = [self._row(entry) for entry in self.filtered_entries]
        return ConsoleView(
            visible=True,
            filter=self.filter,
            filters=filters,
            rows=rows,
            empty_message=self.empty_message,
        )

    def _row(self, entry: LogEntry) -> ConsoleRow:
        expanded = entry.details is not None and entry.id in self.expanded_ids
        return ConsoleRow(
            id=entry.id,
            level=entry.level,
            label=LEVEL_LABELS[entry.level],
            icon=LEVEL_ICONS[entry.level],
            time=entry.timestamp.astimezone().strftime("%H:%M:%S"),
            message=entry.message,
            expandable=entry.details is not None,
            expanded=expanded,
            details=entry.details if expanded else None,
        )

    def render_text(self) -> str:
        view = self.render()
        if not view.visible:
            return ""

        buttons = []
        for button in view.filters:
            text = button.label + (f"({button.badge})" if button.badge else "")
            buttons.append(f"[{text}]" if button.active else text)
        lines = [f"{view.title}  {' '.join(buttons)}"]

        if view.empty_message:
            lines.append(view.empty_message)
        for row in view.rows:
            marker = ""
            if row.expandable:
                marker = " ▼" if row.expanded else " ▶"
            lines.append(f"{row.icon} {row.time} {row.message}{marker}")
            if row.details:
                lines.extend("    " + line for line in row.details.splitlines())
        return "\n".join(lines)
