"""Tests for zsh_bootstrap.lib.command — run_cmd."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from zsh_bootstrap.lib.command import run_cmd


def _completed(argv, rc=0, stdout=None, stderr=None):
    return subprocess.CompletedProcess(argv, rc, stdout, stderr)


class TestRunCmd:
    def test_captures_by_default(self):
        with patch("zsh_bootstrap.lib.command.subprocess.run", return_value=_completed(["id"], stdout="uid=0\n", stderr="")) as run:
            r = run_cmd(["id"])
        assert run.call_args.kwargs["stdout"] is subprocess.PIPE
        assert r.stdout == "uid=0\n"

    def test_interactive_commands_keep_the_terminal(self):
        with patch("zsh_bootstrap.lib.command.subprocess.run", return_value=_completed(["chsh"])) as run:
            r = run_cmd(["chsh", "-s", "/usr/bin/zsh"], capture=False)
        assert run.call_args.kwargs["stdout"] is None
        assert run.call_args.kwargs["stderr"] is None
        assert run.call_args.kwargs["input"] is None
        assert r.ok and r.stdout == "" and r.stderr == ""

    def test_interactive_failure_still_raises(self):
        with patch("zsh_bootstrap.lib.command.subprocess.run", return_value=_completed(["chsh"], rc=1)):
            with pytest.raises(RuntimeError, match=r"Command failed \(1\)"):
                run_cmd(["chsh", "-s", "/usr/bin/zsh"], capture=False)

    def test_missing_binary_without_check(self):
        with patch("zsh_bootstrap.lib.command.subprocess.run", side_effect=FileNotFoundError("nope")):
            r = run_cmd(["nope"], check=False)
        assert r.returncode == 127

    def test_dry_run_does_not_execute(self):
        with patch("zsh_bootstrap.lib.command.subprocess.run") as run:
            assert run_cmd(["rm", "-rf", "/tmp/x"], dry_run=True).ok
        run.assert_not_called()
