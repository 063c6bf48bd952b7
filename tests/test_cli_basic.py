from __future__ import annotations

import json
import os
import subprocess
import sys
import textwrap
from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from issueboard.cli import main

SRC = Path(__file__).resolve().parents[1] / "src"

LOCAL_CONFIG = textwrap.dedent(
    """\
    version: 1
    store:
      backend: local
      local_file: issues.json
    auth:
      session_file: session.json
      load_dotenv: false
    logging:
      level: WARNING
    """
)


def _run(
    cmd: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
) -> tuple[int, str, str]:
    result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, env=env, check=False)
    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "issue_board.config.yaml"
    path.write_text(LOCAL_CONFIG)
    return path


def _cli(config_path: Path, *argv: str) -> int:
    return main(["--config", str(config_path), *argv])


def test_commands_require_login(config_path, capsys):
    rc = _cli(config_path, "list")
    captured = capsys.readouterr()
    assert rc == 1
    assert "must be logged in" in captured.err

    assert _cli(config_path, "whoami") == 1
    assert "Not logged in" in capsys.readouterr().out


def test_login_create_list_and_status_flow(config_path, capsys):
    assert _cli(config_path, "login", "--email", "dev@example.com") == 0
    assert "Logged in as dev@example.com" in capsys.readouterr().out

    assert _cli(config_path, "create", "--title", "Login bug", "--description", "Button dead", "--json") == 0
    created = json.loads(capsys.readouterr().out)
    assert created["similar"] == []
    issue_id = created["id"]

    rc = _cli(
        config_path,
        "create",
        "--title",
        "Login page slow",
        "--description",
        "Takes ages",
        "--priority",
        "high",
    )
    out = capsys.readouterr().out
    assert rc == 0
    assert "Similar issues found:" in out
    assert "Login bug - Open | Medium" in out

    assert _cli(config_path, "list", "--json") == 0
    listed = json.loads(capsys.readouterr().out)
    assert [i["title"] for i in listed] == ["Login page slow", "Login bug"]
    assert listed[1]["createdBy"] == "dev@example.com"

    assert _cli(config_path, "status", issue_id, "Done") == 1
    assert "Cannot move issue directly from Open to Done" in capsys.readouterr().err

    assert _cli(config_path, "status", issue_id, "in-progress") == 0
    assert "Open -> In Progress" in capsys.readouterr().out

    assert _cli(config_path, "list", "--status", "In Progress", "--json") == 0
    assert [i["id"] for i in json.loads(capsys.readouterr().out)] == [issue_id]


def test_status_unknown_issue_and_similar(config_path, capsys):
    _cli(config_path, "login", "--email", "dev@example.com")
    _cli(config_path, "create", "--title", "Dark mode colours", "--description", "Contrast too low")
    capsys.readouterr()

    assert _cli(config_path, "status", "nope", "Done") == 1
    assert "No issue with id nope" in capsys.readouterr().err

    assert _cli(config_path, "similar", "--title", "contrast", "--json") == 0
    assert [i["title"] for i in json.loads(capsys.readouterr().out)] == ["Dark mode colours"]

    assert _cli(config_path, "similar", "--title", "payments") == 0
    assert "No similar issues found." in capsys.readouterr().out


def test_create_rejects_blank_title(config_path, capsys):
    _cli(config_path, "login", "--email", "dev@example.com")
    capsys.readouterr()
    assert _cli(config_path, "create", "--title", "  ", "--description", "x") == 1
    assert "Title is required" in capsys.readouterr().err


def test_login_reads_email_from_environment(config_path, capsys, monkeypatch):
    monkeypatch.setenv("ISSUEBOARD_EMAIL", "env@example.com")
    assert _cli(config_path, "login") == 0
    capsys.readouterr()
    assert _cli(config_path, "whoami") == 0
    assert capsys.readouterr().out.strip() == "env@example.com"

    assert _cli(config_path, "logout") == 0
    assert _cli(config_path, "whoami") == 1


def test_module_entrypoint_runs_in_mock_mode(tmp_path: Path) -> None:
    env = os.environ.copy()
    env["ISSUEBOARD_MOCK"] = "1"
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC), env.get("PYTHONPATH")]))

    rc, out, err = _run([sys.executable, "-m", "issueboard", "login", "--email", "a@b.c"], tmp_path, env)
    assert rc == 0, err
    rc, out, err = _run(
        [sys.executable, "-m", "issueboard", "create", "--title", "T1", "--description", "D1", "--json"],
        tmp_path,
        env,
    )
    assert rc == 0, err
    issue_id = json.loads(out)["id"]

    rc, out, err = _run([sys.executable, "-m", "issueboard", "list", "--json"], tmp_path, env)
    assert rc == 0, err
    assert [i["id"] for i in json.loads(out)] == [issue_id]
    assert (tmp_path / ".issueboard_issues.json").exists()
