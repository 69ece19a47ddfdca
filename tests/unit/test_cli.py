"""Unit tests for the simplecal command line."""
import json
import logging
from datetime import datetime, timezone

import pytest

from simplecal.__main__ import main
from simplecal.event_store import JsonEventStore
from simplecal.simplecal_logging import SIMPLECAL_MODULES

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Run each command from an empty directory with no simplecal env settings."""
    monkeypatch.chdir(tmp_path)
    for key in ("SIMPLECAL_STORE_PATH", "SIMPLECAL_DEBUG", "SIMPLECAL_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    names = [""] + SIMPLECAL_MODULES
    saved = {name: logging.getLogger(name or None).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name or None).setLevel(level)


@pytest.fixture
def store_path(tmp_path, make_series, make_exception):
    path = tmp_path / "events.json"
    store = JsonEventStore(path)
    store.series.save(make_series())
    store.exceptions.add(make_exception(datetime(2024, 1, 8, 9, 0)))
    return path


def test_expand_lists_instances(store_path, capsys) -> None:
    code = main(["expand", "--store", str(store_path), "--start", "2024-01-01", "--end", "2024-01-15"])

    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert len(out) == 5
    assert out[0].startswith("2024-01-01T09:00:00")
    assert "exception" in out[2]
    assert "Rescheduled" in out[2]


def test_expand_json_month_view(store_path, capsys) -> None:
    code = main(["expand", "--store", str(store_path), "--month", "2024-01-20", "--json"])

    data = json.loads(capsys.readouterr().out)
    assert code == 0
    assert {item["kind"] for item in data} == {"plain", "exception"}
    # Month view pads one month each side: Dec 2023 through Feb 2024
    assert data[0]["event"]["start"].startswith("2024-01-01")
    assert data[-1]["event"]["start"].startswith("2024-02-28")


def test_expand_uses_store_path_from_env(store_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("SIMPLECAL_STORE_PATH", str(store_path))
    assert main(["expand", "--start", "2024-01-01", "--end", "2024-01-03"]) == 0
    assert len(capsys.readouterr().out.splitlines()) == 2


def test_expand_without_window_fails(store_path, capsys) -> None:
    assert main(["expand", "--store", str(store_path)]) == 1
    assert "Error:" in capsys.readouterr().err


def test_expand_without_store_fails(capsys) -> None:
    assert main(["expand", "--start", "2024-01-01", "--end", "2024-01-03"]) == 1
    assert "SIMPLECAL_STORE_PATH" in capsys.readouterr().err


def test_describe_with_preview(capsys) -> None:
    code = main(
        ["describe", "FREQ=WEEKLY;BYDAY=MO,WE", "--start", "2024-01-01T09:00", "--preview", "3"]
    )

    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert out == [
        "every week on Monday, Wednesday",
        "  2024-01-01T09:00:00",
        "  2024-01-03T09:00:00",
        "  2024-01-08T09:00:00",
    ]


def test_describe_preview_of_malformed_rule_fails(capsys) -> None:
    assert main(["describe", "FREQ=OFTEN", "--start", "2024-01-01", "--preview", "2"]) == 1
    captured = capsys.readouterr()
    assert captured.out.strip() == "FREQ=OFTEN"
    assert "Error:" in captured.err


def test_delete_this_only_updates_store(store_path, capsys) -> None:
    code = main(
        [
            "delete",
            "--store",
            str(store_path),
            "--series",
            "s1",
            "--date",
            "2024-01-10T09:00",
            "--scope",
            "this_only",
        ]
    )

    assert code == 0
    plan = json.loads(capsys.readouterr().out)
    assert plan["series_write"]["exdates"] == "2024-01-10"
    assert JsonEventStore(store_path).series.get_by_id("s1").exdates == "2024-01-10"


def test_delete_all_removes_series_and_exceptions(store_path, capsys) -> None:
    assert main(["delete", "--store", str(store_path), "--series", "s1"]) == 0

    reloaded = JsonEventStore(store_path)
    assert reloaded.series.list_all() == []
    assert reloaded.exceptions.list_all() == []


def test_delete_unknown_series(store_path, capsys) -> None:
    assert main(["delete", "--store", str(store_path), "--series", "nope"]) == 1
    assert "Series not found: nope" in capsys.readouterr().err


def test_invalid_date_argument_exits() -> None:
    with pytest.raises(SystemExit):
        main(["expand", "--store", "x.json", "--start", "yesterday", "--end", "2024-01-03"])


def test_expand_only_shows_selected_calendars(tmp_path, make_series, capsys) -> None:
    path = tmp_path / "calendars.json"
    store = JsonEventStore(path)
    store.series.save(make_series("work", calendar_id="work", title="Standup"))
    store.series.save(make_series("home", rrule="FREQ=DAILY", calendar_id="home", title="Walk"))

    code = main(
        ["expand", "--store", str(path), "--start", "2024-01-01", "--end", "2024-01-03", "--calendar", "home"]
    )

    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert len(out) == 3
    assert all("Walk" in line for line in out)


def test_expand_sorts_naive_and_aware_series(tmp_path, make_series, capsys) -> None:
    path = tmp_path / "mixed.json"
    store = JsonEventStore(path)
    store.series.save(make_series("naive"))
    store.series.save(
        make_series(
            "aware",
            start=datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc),
            end=datetime(2024, 1, 2, 13, 0, tzinfo=timezone.utc),
        )
    )

    code = main(["expand", "--store", str(path), "--start", "2024-01-01", "--end", "2024-01-15"])

    assert code == 0
    assert len(capsys.readouterr().out.splitlines()) == 9


def test_delete_calendar_cascades(tmp_path, make_series, make_exception, capsys) -> None:
    path = tmp_path / "cascade.json"
    store = JsonEventStore(path)
    store.series.save(make_series("work", calendar_id="work"))
    store.series.save(make_series("home", calendar_id="home"))
    store.exceptions.add(make_exception(datetime(2024, 1, 8, 9, 0), series_id="work"))

    assert main(["delete-calendar", "--store", str(path), "--calendar", "work"]) == 0

    assert "Deleted 1 series" in capsys.readouterr().out
    reloaded = JsonEventStore(path)
    assert [s.id for s in reloaded.series.list_all()] == ["home"]
    assert reloaded.exceptions.list_all() == []
