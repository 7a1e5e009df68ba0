"""Tests for zsh_bootstrap.main — fatal exit paths and check wiring."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from zsh_bootstrap.config import load_config
from zsh_bootstrap.lib.platforms import (
    OSIdentity,
    PackageManagerUnavailableError,
    UnsupportedOSError,
)
from zsh_bootstrap.main import build_checks, main
from zsh_bootstrap.pipeline import validate_order
from zsh_bootstrap.report import Bucket, Outcome, Report


@pytest.fixture
def quiet():
    """Keep main() from touching the real log location or printing a summary."""
    with patch("zsh_bootstrap.main.configure_logging"), patch("zsh_bootstrap.main.print_report") as pr:
        yield pr


# ---------------------------------------------------------------------------
# Fatal preconditions
# ---------------------------------------------------------------------------

class TestFatalPaths:
    def test_unsupported_os(self, quiet):
        with patch("zsh_bootstrap.main.resolve_os_identity", side_effect=UnsupportedOSError("Unsupported operating system: Windows")), \
                patch("zsh_bootstrap.main.run_sequence") as seq:
            assert main([]) == 2
        seq.assert_not_called()
        quiet.assert_not_called()

    def test_no_network(self, quiet):
        with patch("zsh_bootstrap.main.resolve_os_identity", return_value=OSIdentity.UBUNTU), \
                patch("zsh_bootstrap.main.is_online", return_value=False), \
                patch("zsh_bootstrap.main.ensure_package_manager") as pm, \
                patch("zsh_bootstrap.main.run_sequence") as seq:
            assert main([]) == 3
        pm.assert_not_called()
        seq.assert_not_called()

    def test_package_manager_unavailable(self, quiet):
        with patch("zsh_bootstrap.main.resolve_os_identity", return_value=OSIdentity.FEDORA), \
                patch("zsh_bootstrap.main.is_online", return_value=True), \
                patch("zsh_bootstrap.main.ensure_package_manager", side_effect=PackageManagerUnavailableError("dnf not found")), \
                patch("zsh_bootstrap.main.run_sequence") as seq:
            assert main([]) == 4
        seq.assert_not_called()

    def test_missing_config_file(self, quiet, tmp_path):
        assert main(["--config", str(tmp_path / "nope.yaml")]) == 1

    def test_invalid_config(self, quiet, tmp_path):
        p = tmp_path / "bad.yaml"
        p.write_text("- just\n- a list\n", encoding="utf-8")
        assert main(["--config", str(p)]) == 1

    @pytest.mark.parametrize(
        "body",
        [
            "repos:\n  - id: p10k\n    dest: \"{zsh_custom}/themes/p10k\"\n",
            "core_packages:\n  - label: Git\n",
            "terminal:\n  id: ghostty\n  install:\n    fedora:\n      - privileged: true\n",
        ],
        ids=["repo-without-url", "package-without-name", "step-without-argv"],
    )
    def test_entry_missing_a_key(self, quiet, tmp_path, body):
        p = tmp_path / "manifest.yaml"
        p.write_text(body, encoding="utf-8")
        with patch("zsh_bootstrap.main.resolve_os_identity", return_value=OSIdentity.UBUNTU), \
                patch("zsh_bootstrap.main.run_sequence") as seq:
            assert main(["--config", str(p)]) == 1
        seq.assert_not_called()

    def test_unknown_path_placeholder(self, quiet, tmp_path):
        p = tmp_path / "manifest.yaml"
        p.write_text(
            "core_packages:\n  - name: git\n  - name: zsh\n"
            "zshrc:\n  fragments:\n    - id: x\n      lines: [\"alias x=y\"]\n"
            "      requires_paths: [\"{zsh_cstom}/x\"]\n",
            encoding="utf-8",
        )
        with patch("zsh_bootstrap.main.resolve_os_identity", return_value=OSIdentity.UBUNTU), \
                patch("zsh_bootstrap.main.is_online") as online, \
                patch("zsh_bootstrap.main.run_sequence") as seq:
            assert main(["--config", str(p)]) == 1
        online.assert_not_called()
        seq.assert_not_called()


# ---------------------------------------------------------------------------
# Normal completion
# ---------------------------------------------------------------------------

class TestCompletion:
    def test_check_failures_still_exit_zero(self, quiet, tmp_path):
        failed = Report().add(Outcome(Bucket.FAILED, "Ghostty"))
        with patch("zsh_bootstrap.main.resolve_os_identity", return_value=OSIdentity.UBUNTU), \
                patch("zsh_bootstrap.main.is_online", return_value=True), \
                patch("zsh_bootstrap.main.ensure_package_manager", return_value=None), \
                patch("zsh_bootstrap.main.run_sequence", return_value=failed) as seq:
            assert main(["--report", str(tmp_path / "r.json"), "--only", "package:git"]) == 0
        assert seq.call_args.kwargs["only"] == ["package:git"]
        quiet.assert_called_once_with(failed)
        assert (tmp_path / "r.json").exists()

    def test_unwritable_report_path_still_exits_zero(self, quiet, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with patch("zsh_bootstrap.main.resolve_os_identity", return_value=OSIdentity.UBUNTU), \
                patch("zsh_bootstrap.main.is_online", return_value=True), \
                patch("zsh_bootstrap.main.ensure_package_manager", return_value=None), \
                patch("zsh_bootstrap.main.run_sequence", return_value=Report()):
            assert main(["--report", str(blocker / "r.json")]) == 0
        quiet.assert_called_once()

    def test_homebrew_outcome_seeds_report(self, quiet):
        with patch("zsh_bootstrap.main.resolve_os_identity", return_value=OSIdentity.MACOS), \
                patch("zsh_bootstrap.main.is_online", return_value=True), \
                patch("zsh_bootstrap.main.ensure_package_manager", return_value=True), \
                patch("zsh_bootstrap.main.run_sequence", side_effect=lambda checks, ctx, only, report: report) as seq:
            assert main([]) == 0
        seed = seq.call_args.kwargs["report"]
        assert seed.labels(Bucket.INSTALLED) == ["Homebrew"]


# ---------------------------------------------------------------------------
# build_checks
# ---------------------------------------------------------------------------

class TestBuildChecks:
    def test_default_manifest_is_well_ordered(self):
        checks = build_checks(load_config())
        validate_order(checks)
        ids = [c.check_id for c in checks]
        assert ids.index("framework") < ids.index("repo:powerlevel10k") < ids.index("zshrc:theme")
        assert ids.index("package:zsh") < ids.index("default-shell")
        assert ids.index("fonts") < ids.index("terminal-font")

    def test_default_manifest_has_expected_checks(self):
        ids = {c.check_id for c in build_checks(load_config())}
        assert {
            "xcode-clt",
            "package:git",
            "package:zsh",
            "package:fd",
            "ghostty",
            "ghostty:font-family",
            "zshrc:gam-alias",
            "konsole:profile",
            "konsole:default-profile",
        } <= ids
