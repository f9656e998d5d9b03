"""In-memory capture of console output and process faults for the dev console.

Wraps the four ``console`` channels (log / info / warn / error), the
uncaught-exception hooks (``sys`` and ``threading``) and the asyncio loop
exception handler, and keeps the most recent *max_entries* entries
available for the REST API, the log WebSocket and :class:`~meal_planner.dev_console.LogConsole`.

Nothing is patched at import time: call :meth:`LogCapture.install` and
:meth:`LogCapture.uninstall` explicitly (the FastAPI lifespan and the test
fixtures do).
"""

from __future__ import annotations

import asyncio
import functools
import itertools
import json
import logging
import sys
import threading
import traceback
from collections import deque
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from types import TracebackType
from typing import Any, Literal

from pydantic import BaseModel

from meal_planner.config import settings
from meal_planner.console import console

LogLevel = Literal["log", "info", "warn", "error"]
LEVELS: tuple[LogLevel, ...] = ("log", "info", "warn", "error")

CLEAR_SENTINEL_ID = -1
CLEARED_MESSAGE = "--- Console cleared ---"

UNCAUGHT_PREFIX = "Uncaught: "
REJECTION_PREFIX = "Unhandled Promise Rejection: "


@dataclass(frozen=True)
class LogEntry:
    id: int
    timestamp: datetime
    level: LogLevel
    message: str
    details: str | None = None  # stack traces of exception arguments

    @property
    def is_clear_sentinel(self) -> bool:
        return self.id == CLEAR_SENTINEL_ID


Listener = Callable[[LogEntry], None]


# ── Formatting ────────────────────────────────────────────────────────────────


def _plain(value: object) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


def format_value(value: object) -> str:
    """Render one call argument: text verbatim, anything else as indented JSON.

    Values that cannot be serialised (cyclic containers, sets, arbitrary
    objects, exceptions) fall back to their string form.
    """
    if isinstance(value, str):
        return value
    try:
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json", by_alias=True)
        return json.dumps(value, indent=2)
    except Exception:
        return _plain(value)


def format_message(args: Sequence[object]) -> str:
    return " ".join(format_value(a) for a in args)


def format_exception(exc: BaseException) -> str:
    """Full traceback when *exc* was raised, ``"Type: message"`` otherwise."""
    if exc.__traceback__ is not None:
        lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
    else:
        lines = traceback.format_exception_only(type(exc), exc)
    return "".join(lines).rstrip()


def extract_details(args: Sequence[object]) -> str | None:
    traces = [format_exception(a) for a in args if isinstance(a, BaseException)]
    return "\n".join(traces) if traces else None


def _exception_message(exc: BaseException) -> str:
    return _plain(exc) or type(exc).__name__


# ── stdlib logging bridge ─────────────────────────────────────────────────────


def level_for_record(levelno: int) -> LogLevel:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    return "log"


class CaptureHandler(logging.Handler):
    """Logging handler that feeds stdlib log records into a :class:`LogCapture`."""

    def __init__(self, capture: LogCapture) -> None:
        super().__init__()
        self.capture = capture

    def emit(self, record: logging.LogRecord) -> None:
        try:
            args: list[object] = [f"{record.name}: {record.getMessage()}"]
            if record.exc_info and record.exc_info[1] is not None:
                args.append(record.exc_info[1])
            self.capture.capture(level_for_record(record.levelno), args)
        except Exception:
            self.handleError(record)


class _ChainedHook:
    """One installation of a process-wide fault hook.

    Records through *record* while active, then always forwards to the hook
    it replaced (or *fallback* when there was none).  Once released it only
    forwards, so captures uninstalled out of order never drop a fault.
    """

    def __init__(
        self,
        record: Callable[..., None],
        previous: Callable[..., Any] | None,
        fallback: Callable[..., Any],
    ) -> None:
        self.record = record
        self.previous = previous
        self.fallback = fallback
        self.active = True

    def __call__(self, *args: Any) -> None:
        if self.active:
            try:
                self.record(*args)
            except Exception:
                pass  # recording must never hide the fault itself
        (self.previous or self.fallback)(*args)


def _live_hook(hook: Callable[..., Any] | None) -> Callable[..., Any] | None:
    """Skip released hooks so a restore never reinstates a dead link."""
    while isinstance(hook, _ChainedHook) and not hook.active:
        hook = hook.previous
    return hook


def _default_loop_handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    loop.default_exception_handler(context)


# ── Capture ───────────────────────────────────────────────────────────────────


class LogCapture:
    """Intercepts the console channels and keeps a bounded history of entries."""

    def __init__(self, target: Any = console, max_entries: int = 500) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.target = target
        self.max_entries = max_entries
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._listeners: dict[object, Listener] = {}
        self._ids = itertools.count(1)
        self._local = threading.local()

        self._installed = False
        # level -> (original callable, whether it lived in the target's own __dict__)
        self._originals: dict[str, tuple[Callable[..., Any], bool]] = {}
        self._excepthook: _ChainedHook | None = None
        self._thread_excepthook: _ChainedHook | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_hook: _ChainedHook | None = None
        self._log_handler: CaptureHandler | None = None

    @property
    def installed(self) -> bool:
        return self._installed

    # ── lifecycle ────────────────────────────────────────────────────────────

    def install(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        capture_logging: bool = False,
    ) -> None:
        """Start intercepting.  Safe to call multiple times.

        *loop* defaults to the running event loop, if any; its exception
        handler receives unhandled asynchronous failures.  With
        *capture_logging* stdlib log records are captured as well.
        """
        if self._installed:
            return

        own_attrs = getattr(self.target, "__dict__", {})
        originals: dict[str, tuple[Callable[..., Any], bool]] = {}
        try:
            for level in LEVELS:
                original = getattr(self.target, level)
                was_own_attr = level in own_attrs
                setattr(self.target, level, self._wrap(level, original))
                originals[level] = (original, was_own_attr)
        except Exception:
            self._restore_channels(originals)
            raise
        self._originals = originals
        self._installed = True

        self._excepthook = _ChainedHook(self._handle_uncaught, sys.excepthook, sys.__excepthook__)
        sys.excepthook = self._excepthook
        self._thread_excepthook = _ChainedHook(
            self._handle_thread_exception, threading.excepthook, threading.__excepthook__
        )
        threading.excepthook = self._thread_excepthook

        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
        if loop is not None:
            self._loop = loop
            self._loop_hook = _ChainedHook(
                self._handle_loop_exception, loop.get_exception_handler(), _default_loop_handler
            )
            loop.set_exception_handler(self._loop_hook)

        if capture_logging:
            self._log_handler = CaptureHandler(self)
            logging.root.addHandler(self._log_handler)

    def uninstall(self) -> None:
        """Restore everything :meth:`install` replaced.  No-op when not installed."""
        if not self._installed:
            return
        self._installed = False

        self._restore_channels(self._originals)
        self._originals = {}

        # A hook replaced again by a later install stays in that chain as a
        # pass-through; only a hook still in place is swapped back.
        if self._excepthook is not None:
            self._excepthook.active = False
            if sys.excepthook is self._excepthook:
                sys.excepthook = _live_hook(self._excepthook.previous) or sys.__excepthook__
            self._excepthook = None

        if self._thread_excepthook is not None:
            self._thread_excepthook.active = False
            if threading.excepthook is self._thread_excepthook:
                threading.excepthook = (
                    _live_hook(self._thread_excepthook.previous) or threading.__excepthook__
                )
            self._thread_excepthook = None

        if self._loop is not None and self._loop_hook is not None:
            self._loop_hook.active = False
            if self._loop.get_exception_handler() is self._loop_hook:
                self._loop.set_exception_handler(_live_hook(self._loop_hook.previous))
        self._loop = None
        self._loop_hook = None

        if self._log_handler is not None:
            logging.root.removeHandler(self._log_handler)
            self._log_handler = None

    def _restore_channels(self, originals: dict[str, tuple[Callable[..., Any], bool]]) -> None:
        for level, (original, was_own_attr) in originals.items():
            if was_own_attr:
                setattr(self.target, level, original)
            else:
                # The channel came from the class; dropping the instance
                # attribute exposes it again.
                delattr(self.target, level)

    def _wrap(self, level: LogLevel, original: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(original)
        def channel(*args: Any, **kwargs: Any) -> Any:
            self.capture(level, args)
            return original(*args, **kwargs)

        return channel

    # ── recording ────────────────────────────────────────────────────────────

    def capture(self, level: LogLevel, args: Sequence[object]) -> LogEntry | None:
        """Record one emission.  Returns ``None`` when called from inside a listener."""
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level!r}")
        return self._append(level, format_message(args), extract_details(args))

    def capture_uncaught(
        self,
        exc: BaseException,
        source: str | None = None,
        lineno: int | None = None,
        colno: int | None = None,
    ) -> LogEntry | None:
        if exc.__traceback__ is not None:
            details = format_exception(exc)
        else:
            details = f"{source or '<unknown>'}:{lineno or 0}:{colno or 0}"
        return self._append("error", UNCAUGHT_PREFIX + _exception_message(exc), details)

    def capture_rejection(self, reason: object) -> LogEntry | None:
        if isinstance(reason, BaseException):
            message = _exception_message(reason)
            details = format_exception(reason) if reason.__traceback__ is not None else None
        else:
            message = _plain(reason)
            details = None
        return self._append("error", REJECTION_PREFIX + message, details)

    def _append(self, level: LogLevel, message: str, details: str | None) -> LogEntry | None:
        if getattr(self._local, "notifying", False):
            return None
        entry = LogEntry(
            id=next(self._ids),
            timestamp=datetime.now(timezone.utc),
            level=level,
            message=message,
            details=details,
        )
        self._entries.append(entry)
        self._notify(entry)
        return entry

    def _notify(self, entry: LogEntry) -> None:
        previous = getattr(self._local, "notifying", False)
        self._local.notifying = True
        try:
            for token, listener in list(self._listeners.items()):
                if token not in self._listeners:
                    continue  # unsubscribed earlier in this round
                try:
                    listener(entry)
                except Exception:
                    pass  # a broken listener must not break logging
        finally:
            self._local.notifying = previous

    # ── fault hooks ──────────────────────────────────────────────────────────

    def _handle_uncaught(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        frame = traceback.extract_tb(tb)[-1] if tb is not None else None
        self.capture_uncaught(
            exc,
            source=frame.filename if frame else None,
            lineno=frame.lineno if frame else None,
            colno=frame.colno if frame else None,
        )

    def _handle_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        # threading's default hook ignores SystemExit; so do we.
        if args.exc_value is None or issubclass(args.exc_type, SystemExit):
            return
        self._handle_uncaught(args.exc_type, args.exc_value, args.exc_traceback)

    def _handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        self.capture_rejection(context.get("exception", context.get("message")))

    # ── public read / subscribe API ──────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for future entries.  Returns an unsubscribe function."""
        token = object()
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def subscribe_queue(self, maxsize: int = 256) -> tuple[asyncio.Queue[LogEntry], Callable[[], None]]:
        """Subscribe an asyncio queue on the running loop (for WebSocket consumers).

        Entries may be captured on any thread, so they are handed to the loop
        with ``call_soon_threadsafe``.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[LogEntry] = asyncio.Queue(maxsize=maxsize)

        def put(entry: LogEntry) -> None:
            try:
                queue.put_nowait(entry)
            except asyncio.QueueFull:
                pass  # slow consumer, skip

        unsubscribe = self.subscribe(lambda entry: loop.call_soon_threadsafe(put, entry))
        return queue, unsubscribe

    def get_entries(self, limit: int | None = None, level: LogLevel | None = None) -> list[LogEntry]:
        """Return a copy of the retained entries, oldest first, optionally filtered."""
        entries = [e for e in self._entries if level is None or e.level == level]
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    def clear(self) -> None:
        """Drop every entry and notify listeners with the clear sentinel."""
        self._entries.clear()
        self._notify(
            LogEntry(
                id=CLEAR_SENTINEL_ID,
                timestamp=datetime.now(timezone.utc),
                level="info",
                message=CLEARED_MESSAGE,
            )
        )


# Singleton - importable from anywhere.
log_capture = LogCapture(max_entries=settings.log_capture_max_entries)
