"""CLI argument handling, exit codes and JSON event output."""

from __future__ import annotations

import json
from typing import Any

import pytest

from core.models import Category, DiscoveryMode, RunResult, RunStatus
from rssffs import cli


def _events(capsys) -> list[dict[str, Any]]:
    out = capsys.readouterr().out
    return [json.loads(line) for line in out.splitlines() if line.strip()]


@pytest.fixture
def reader_env(clean_env):
    clean_env.setenv("RSS_READER_ENDPOINT", "https://reader.example.com")
    clean_env.setenv("RSS_READER_API_KEY", "k")
    return clean_env


@pytest.fixture
def fake_run(monkeypatch):
    """Replace the pipeline with a recorder returning a canned result."""
    calls: list[dict[str, Any]] = []
    outcome = {"status": RunStatus.COMPLETED}

    def _run(**kwargs: Any) -> RunResult:
        calls.append(kwargs)
        result = RunResult(
            page_url=kwargs["page_url"],
            category=kwargs["category"],
            mode=DiscoveryMode.SINGLE_URL if kwargs["single_url_mode"] else DiscoveryMode.TRAVERSAL,
            status=outcome["status"],
            discovered_feeds=["https://techblog.example.org/feed.xml"],
            success_count=1 if outcome["status"] == RunStatus.COMPLETED else 0,
        )
        if kwargs["logger"].run_id:
            result.run_id = kwargs["logger"].run_id
        return result

    monkeypatch.setattr(cli, "run_pipeline", _run)
    return calls, outcome


@pytest.mark.integration
@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        ([], None),
        (["-s"], True),
        (["--single-url-mode"], True),
        (["--traversal-mode"], False),
    ],
)
def test_mode_flags_are_tri_state(reader_env, fake_run, capsys, flags, expected):
    calls, _ = fake_run

    exit_code = cli.main(["run", "https://news.example.com/", "-c", "Tech", *flags])

    assert exit_code == 0
    assert calls[0]["single_url_mode"] is expected


@pytest.mark.integration
def test_mode_flags_are_mutually_exclusive(reader_env, fake_run):
    with pytest.raises(SystemExit):
        cli.main(["run", "https://news.example.com/", "-c", "Tech", "-s", "--traversal-mode"])


@pytest.mark.integration
def test_run_passes_options_and_reports_summary(reader_env, fake_run, capsys):
    calls, _ = fake_run

    exit_code = cli.main(
        [
            "run",
            "  https://news.example.com/  ",
            "--category",
            "Tech",
            "-d",
            "-r",
            "--max-workers",
            "4",
            "--run-id",
            "run-cli",
        ]
    )

    assert exit_code == 0
    call = calls[0]
    assert call["page_url"] == "https://news.example.com/"
    assert call["debug"] is True
    assert call["clear_category_feeds"] is True
    assert call["max_workers"] == 4
    assert call["logger"].min_level == "debug"
    assert call["settings"].rss_reader_endpoint == "https://reader.example.com"

    summary = _events(capsys)[-1]
    assert summary["event_type"] == "cli_run_completed"
    assert summary["run_id"] == "run-cli"
    assert summary["status"] == "COMPLETED"
    assert summary["subscribed"] == 1


@pytest.mark.integration
def test_failed_run_exits_non_zero(reader_env, fake_run, capsys):
    _, outcome = fake_run
    outcome["status"] = RunStatus.FAILED

    assert cli.main(["run", "https://news.example.com/", "-c", "Nope"]) == 1
    assert _events(capsys)[-1]["status"] == "FAILED"


@pytest.mark.integration
def test_missing_settings_reported_as_cli_error(clean_env, fake_run, capsys):
    calls, _ = fake_run

    assert cli.main(["run", "https://news.example.com/", "-c", "Tech"]) == 1

    assert calls == []
    error = _events(capsys)[-1]
    assert error["event_type"] == "cli_error"
    assert error["level"] == "error"
    assert error["error_type"] == "ConfigurationError"


@pytest.mark.integration
def test_category_is_required(reader_env):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["run", "https://news.example.com/"])
    assert exc_info.value.code == 2


@pytest.mark.integration
def test_max_workers_must_be_positive(reader_env):
    with pytest.raises(SystemExit):
        cli.main(["run", "https://news.example.com/", "-c", "Tech", "--max-workers", "0"])


@pytest.mark.integration
def test_categories_command_lists_titles(reader_env, monkeypatch, capsys):
    monkeypatch.setattr(
        cli.RSSReaderClient,
        "list_categories",
        lambda self: [Category(id=7, title="Tech"), Category(id=12, title="Sports")],
    )

    assert cli.main(["categories"]) == 0

    event = _events(capsys)[-1]
    assert event["event_type"] == "cli_categories_completed"
    assert event["categories"] == [{"id": 7, "title": "Tech"}, {"id": 12, "title": "Sports"}]


@pytest.mark.integration
def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--version"])

    assert exc_info.value.code == 0
    assert "rssffs 0.1.0" in capsys.readouterr().out


@pytest.mark.integration
def test_no_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage: rssffs" in capsys.readouterr().out
