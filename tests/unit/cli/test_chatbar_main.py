"""Unit tests for the chatbar command line."""

import pytest

from chatbar import __version__
from chatbar.cli import main as cli_main

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def no_terminal(monkeypatch, tmp_path):
    """Record the app instead of starting curses; keep logs out of the home dir."""
    runs = []
    monkeypatch.setattr(cli_main.curses, "wrapper", lambda fn: runs.append(fn.__self__))
    monkeypatch.setattr(cli_main, "setup_logging", lambda level=None: None)
    monkeypatch.setenv("CHATBAR_CONFIG", str(tmp_path / "missing.yml"))
    return runs


def test_parser_options():
    args = cli_main.build_parser().parse_args(["--snapshot", "s.yml", "--watch", "--sidebar", "-1"])
    assert str(args.snapshot) == "s.yml"
    assert args.watch is True
    assert args.sidebar == -1
    assert args.browser is False


def test_runs_with_empty_store(no_terminal):
    assert cli_main.main([]) == 0
    (app,) = no_terminal
    assert app.store.list_connections() == []
    assert app.watcher is None


def test_snapshot_and_sidebar(tmp_path, no_terminal):
    snapshot = tmp_path / "snapshot.yml"
    snapshot.write_text("connections:\n  - name: irc.example.org\n", encoding="utf-8")

    assert cli_main.main(["--snapshot", str(snapshot), "--watch", "--sidebar", "1"]) == 0

    (app,) = no_terminal
    assert [ref.name for ref in app.store.list_connections()] == ["irc.example.org"]
    assert app.watcher is not None
    assert app.controller.is_live()


def test_watch_needs_snapshot(no_terminal):
    assert cli_main.main(["--watch"]) == 2
    assert no_terminal == []


def test_missing_snapshot(tmp_path, no_terminal):
    assert cli_main.main(["--snapshot", str(tmp_path / "nope.yml")]) == 2
    assert no_terminal == []


def test_malformed_snapshot(tmp_path, no_terminal, capsys):
    snapshot = tmp_path / "snapshot.yml"
    snapshot.write_text("connections:\n  - targets: []\n", encoding="utf-8")
    assert cli_main.main(["--snapshot", str(snapshot)]) == 2
    assert no_terminal == []
    assert "missing 'name'" in capsys.readouterr().err


def test_invalid_config(tmp_path, no_terminal):
    config = tmp_path / "chatbar.yml"
    config.write_text("tree:\n  sort_mode: random\n", encoding="utf-8")
    assert cli_main.main(["--config", str(config)]) == 2


def test_version_flag(capsys, no_terminal):
    with pytest.raises(SystemExit) as exc:
        cli_main.main(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.strip() == f"chatbar {__version__}"
    assert no_terminal == []
