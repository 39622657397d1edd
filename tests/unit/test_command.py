"""Tests for CommandRunner."""

from __future__ import annotations

import sys
import threading
import time
from pathlib import Path

import pytest

from repodigest.exceptions import CommandCancelled, CommandError, CommandTimeout
from repodigest.infra.command import CommandRunner

SLEEPER = [sys.executable, "-c", "import sys, time; sys.stderr.write('started\\n'); sys.stderr.flush(); time.sleep(30)"]
LINGERING_CHILD = ["sh", "-c", "sleep 30 & sleep 30"]


class TestRunCapture:
    """Tests for run_capture."""

    def test_captures_output(self, tmp_path: Path) -> None:
        runner = CommandRunner()
        result = runner.run_capture(
            [sys.executable, "-c", "import os, sys; print(os.getcwd()); sys.stderr.write('warn')"],
            cwd=tmp_path,
            timeout=30,
        )
        assert result.ok
        assert result.stdout.strip() == str(tmp_path)
        assert result.stderr == "warn"
        assert result.cwd == tmp_path
        assert result.duration >= 0

    def test_nonzero_exit_returned(self) -> None:
        result = CommandRunner().run_capture([sys.executable, "-c", "raise SystemExit(3)"], timeout=30)
        assert result.returncode == 3
        assert not result.ok

    def test_nonzero_exit_raises_with_check(self) -> None:
        with pytest.raises(CommandError) as exc:
            CommandRunner().run_capture([sys.executable, "-c", "raise SystemExit(2)"], timeout=30, check=True)
        assert exc.value.returncode == 2

    def test_env_merged(self) -> None:
        result = CommandRunner().run_capture(
            [sys.executable, "-c", "import os; print(os.environ['REPODIGEST_TEST_VALUE'])"],
            env={"REPODIGEST_TEST_VALUE": "yes"},
            timeout=30,
        )
        assert result.stdout.strip() == "yes"

    def test_missing_binary(self) -> None:
        with pytest.raises(CommandError, match="Command not found"):
            CommandRunner().run_capture(["definitely-not-a-real-binary-xyz"])

    def test_dry_run_skips_execution(self, tmp_path: Path) -> None:
        marker = tmp_path / "marker"
        result = CommandRunner(dry_run=True).run_capture(["touch", str(marker)])
        assert result.ok
        assert not marker.exists()


class TestInterruption:
    """Tests for timeout and cancellation."""

    def test_timeout_kills_process(self) -> None:
        started = time.monotonic()
        with pytest.raises(CommandTimeout) as exc:
            CommandRunner().run_capture(SLEEPER, timeout=1.0)
        assert time.monotonic() - started < 10
        assert "started" in exc.value.stderr

    def test_cancel_event_kills_process(self) -> None:
        cancel = threading.Event()
        timer = threading.Timer(0.3, cancel.set)
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(CommandCancelled):
                CommandRunner().run_capture(SLEEPER, timeout=60, cancel=cancel)
        finally:
            timer.cancel()
        assert time.monotonic() - started < 10

    def test_timeout_not_held_by_lingering_child(self) -> None:
        # The backgrounded sleep inherits stdout/stderr, like git's remote helpers
        started = time.monotonic()
        with pytest.raises(CommandTimeout):
            CommandRunner().run_capture(LINGERING_CHILD, timeout=0.5)
        assert time.monotonic() - started < 5

    def test_cancel_not_held_by_lingering_child(self) -> None:
        cancel = threading.Event()
        timer = threading.Timer(0.3, cancel.set)
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(CommandCancelled):
                CommandRunner().run_capture(LINGERING_CHILD, timeout=60, cancel=cancel)
        finally:
            timer.cancel()
        assert time.monotonic() - started < 5


def test_run_git_disables_prompts(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_run_capture(self: CommandRunner, command: list[str], **kwargs: object) -> None:
        captured["command"] = command
        captured.update(kwargs)

    monkeypatch.setattr(CommandRunner, "run_capture", fake_run_capture)

    CommandRunner().run_git(["status"], git_bin="/opt/git", timeout=5)

    assert captured["command"] == ["/opt/git", "status"]
    assert captured["env"] == {"GIT_TERMINAL_PROMPT": "0"}
    assert captured["timeout"] == 5
