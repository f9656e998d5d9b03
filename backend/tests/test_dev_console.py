from unittest.mock import Mock

import pytest

from meal_planner.dev_console import LogConsole
from meal_planner.log_capture import LogCapture


def _raised(exc: BaseException) -> BaseException:
    try:
        raise exc
    except BaseException as caught:
        return caught


@pytest.fixture
def log_console(capture: LogCapture):
    with LogConsole(capture=capture) as lc:
        yield lc


def _messages(log_console: LogConsole) -> list[str]:
    return [row.message for row in log_console.render().rows]


# ── Mount / unmount ───────────────────────────────────────────────────────────


def test_mount_seeds_history_then_follows_live_entries(capture, target):
    target.log("history")
    lc = LogConsole(capture=capture)
    lc.mount()
    target.log("live")

    assert [e.message for e in lc.entries] == ["history", "live"]
    lc.unmount()


def test_unmount_unsubscribes_exactly_once():
    capture = Mock(spec=LogCapture)
    capture.get_entries.return_value = []
    unsubscribe = Mock()
    capture.subscribe.return_value = unsubscribe

    lc = LogConsole(capture=capture)
    lc.mount()
    lc.mount()
    lc.unmount()
    lc.unmount()

    capture.subscribe.assert_called_once()
    unsubscribe.assert_called_once_with()
    assert not lc.mounted


def test_remount_cycle(capture, target):
    lc = LogConsole(capture=capture)
    lc.mount()
    lc.unmount()
    target.log("while unmounted")
    lc.mount()
    target.log("after remount")
    lc.unmount()
    target.log("after unmount")

    assert [e.message for e in lc.entries] == ["while unmounted", "after remount"]


def test_on_change_called_for_new_entries(capture, target):
    on_change = Mock()
    with LogConsole(capture=capture, on_change=on_change):
        target.info("ping")

    on_change.assert_called_once_with()


def test_entries_stay_within_capture_capacity(target):
    cap = LogCapture(target=target, max_entries=3)
    cap.install()
    try:
        with LogConsole(capture=cap) as lc:
            target.error("first", ValueError("boom"))
            lc.toggle_expand(lc.entries[0].id)
            for i in range(1000):
                target.log(f"entry {i}")

            assert [e.message for e in lc.entries] == ["entry 997", "entry 998", "entry 999"]
            assert [e.id for e in lc.entries] == [e.id for e in cap.get_entries()]
            assert lc.expanded_ids == set()
    finally:
        cap.uninstall()


# ── Display ───────────────────────────────────────────────────────────────────


def test_renders_entries_with_level_styling(log_console, target):
    target.log("test message from logger")
    target.error("something went wrong")

    rows = log_console.render().rows
    assert [(r.level, r.label, r.icon) for r in rows] == [("log", "LOG", "📝"), ("error", "ERR", "🔴")]
    assert rows[1].message == "something went wrong"
    assert not rows[1].expandable


def test_filter_by_level_is_non_destructive(log_console, target):
    target.log("a log message")
    target.error("an error message")
    target.warn("a warn message")

    log_console.set_filter("error")
    assert _messages(log_console) == ["an error message"]
    assert len(log_console.entries) == 3

    log_console.set_filter("all")
    assert _messages(log_console) == ["a log message", "an error message", "a warn message"]


def test_unknown_filter_rejected(log_console):
    with pytest.raises(ValueError):
        log_console.set_filter("debug")
    assert log_console.filter == "all"


def test_badges_count_warnings_and_errors_across_all_entries(log_console, target):
    target.error("err1")
    target.error("err2")
    target.warn("warn1")
    target.info("info1")
    log_console.set_filter("info")

    view = log_console.render()
    badges = {f.level: f.badge for f in view.filters}
    assert badges == {"all": None, "log": None, "info": None, "warn": 1, "error": 2}
    assert [f.level for f in view.filters if f.active] == ["info"]


def test_no_badges_when_counts_are_zero(log_console, target):
    target.log("quiet")
    assert log_console.badges == {}


def test_empty_state_names_active_filter(log_console, target):
    assert log_console.render().empty_message == "No log entries."

    target.log("not a warning")
    log_console.set_filter("warn")
    view = log_console.render()
    assert view.rows == []
    assert view.empty_message == 'No log entries for "warn".'

    log_console.set_filter("log")
    assert log_console.render().empty_message is None


# ── Expansion ─────────────────────────────────────────────────────────────────


def test_toggle_expand_shows_details(log_console, target):
    target.error("fail", _raised(ValueError("Something broke")))
    [row] = log_console.render().rows
    assert row.expandable and not row.expanded and row.details is None

    assert log_console.toggle_expand(row.id) is True
    [row] = log_console.render().rows
    assert row.expanded
    assert "Something broke" in row.details

    assert log_console.toggle_expand(row.id) is False
    assert log_console.render().rows[0].details is None


def test_entries_without_details_are_not_expandable(log_console, target):
    target.log("plain")
    entry_id = log_console.entries[0].id

    assert log_console.toggle_expand(entry_id) is False
    assert log_console.expanded_ids == set()


def test_expanded_state_survives_filter_changes(log_console, target):
    target.error("fail", ValueError("boom"))
    entry_id = log_console.entries[0].id
    log_console.toggle_expand(entry_id)

    log_console.set_filter("log")
    log_console.set_filter("error")

    assert log_console.render().rows[0].expanded


# ── Clear / close ─────────────────────────────────────────────────────────────


def test_clear_resets_entries_and_expansion(log_console, capture, target):
    target.error("message to be cleared", ValueError("boom"))
    log_console.toggle_expand(log_console.entries[0].id)

    log_console.clear()

    assert log_console.entries == []
    assert log_console.expanded_ids == set()
    assert capture.get_entries() == []
    assert log_console.render().empty_message == "No log entries."


def test_clear_from_another_observer_resets_view(log_console, capture, target):
    target.log("one")
    capture.clear()

    assert log_console.entries == []


def test_close_hides_console_and_calls_on_close(capture):
    on_close = Mock()
    lc = LogConsole(capture=capture, on_close=on_close)
    lc.close()

    on_close.assert_called_once_with()
    view = lc.render()
    assert not view.visible
    assert view.rows == []
    assert lc.render_text() == ""


# ── Text rendering ────────────────────────────────────────────────────────────


def test_render_text(log_console, target):
    target.warn("careful")
    target.error("fail", ValueError("boom"))
    log_console.toggle_expand(log_console.entries[1].id)

    text = log_console.render_text()
    lines = text.splitlines()
    assert lines[0].startswith("🛠 Dev Console  [All]")
    assert "WARN(1)" in lines[0] and "ERR(1)" in lines[0]
    assert lines[1].endswith("careful")
    assert lines[2].endswith("fail boom ▼")
    assert lines[3] == "    ValueError: boom"
