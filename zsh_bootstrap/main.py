from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Sequence

from .checks import (
    CloneCheck,
    DefaultShellCheck,
    FontsCheck,
    FragmentCheck,
    FrameworkCheck,
    PackageCheck,
    TerminalFontCheck,
    TerminalInstallCheck,
    XcodeCltCheck,
)
from .config import BootstrapConfig, ConfigError, load_config
from .context import BootstrapCtx
from .lib.net import is_online
from .lib.pkg import ensure_package_manager
from .lib.platforms import (
    FatalPreconditionError,
    NetworkUnavailableError,
    capabilities_for,
    resolve_os_identity,
)
from .logging_utils import DEFAULT_LOG_PATH, DONE, SECTION, SKIP, configure_logging
from .pipeline import Check, run_sequence, validate_order
from .report import Bucket, Outcome, Report, print_report, save_report

logger = logging.getLogger(__name__)


def build_checks(cfg: BootstrapConfig) -> List[Check]:
    """The fixed, ordered desired state. Later checks name what they need."""

    checks: List[Check] = [XcodeCltCheck()]
    checks += [PackageCheck.from_entry(p, section="Installing Core Packages") for p in cfg.core_packages]
    checks.append(DefaultShellCheck())
    checks.append(FrameworkCheck(str(cfg.framework.get("label") or "Oh My Zsh"), cfg.framework_installer_url))

    fonts: Optional[FontsCheck] = None
    if cfg.fonts:
        fonts = FontsCheck.from_entry(cfg.fonts)
        checks.append(fonts)
        term_app = cfg.fonts.get("terminal_app")
        if term_app:
            family = str(cfg.fonts.get("family") or "MesloLGS NF")
            checks.append(
                TerminalFontCheck(
                    str(term_app.get("label") or f"Terminal.app font → {family}"),
                    family,
                    int(term_app.get("size") or 12),
                    fonts,
                )
            )

    checks += [CloneCheck.from_entry(r) for r in cfg.repos]
    checks += [PackageCheck.from_entry(p, section="Installing CLI Tools") for p in cfg.tool_packages]

    term = cfg.terminal
    if term:
        terminal = TerminalInstallCheck.from_entry(term)
        checks.append(terminal)
        for s in term.get("settings") or []:
            checks.append(
                FragmentCheck.from_entry(
                    {"label": f"{terminal.label} {s.get('key')}", **s},
                    path=str(term.get("config_file") or "{terminal_config_dir}/config"),
                    prefix=terminal.check_id,
                    section=f"Configuring {terminal.label}",
                )
            )

    for entry in cfg.zshrc_fragments:
        checks.append(FragmentCheck.from_entry(entry, path=cfg.zshrc_path, prefix="zshrc", section="Configuring .zshrc"))

    konsole = cfg.konsole
    if konsole:
        shared = {
            "platforms": konsole.get("platforms"),
            "when_commands": konsole.get("when_commands") or [],
        }
        profile = konsole.get("profile") or {}
        if profile:
            checks.append(
                FragmentCheck.from_entry(
                    {"id": "profile", **shared, **profile},
                    path=str(profile.get("path")),
                    prefix="konsole",
                    section="Configuring Konsole",
                )
            )
        default = konsole.get("default_profile") or {}
        if default:
            checks.append(
                FragmentCheck.from_entry(
                    {"id": "default-profile", "separator": "=", "override": True, **shared, **default},
                    path=str(default.get("path")),
                    prefix="konsole",
                    section="Configuring Konsole",
                )
            )

    return checks


def check_paths(checks: Sequence[Check], ctx: BootstrapCtx) -> None:
    """Expand every manifest path once, so a bad placeholder fails before any check runs."""
    for check in checks:
        for template in check.path_templates():
            ctx.expand(template)


def preflight(ctx: BootstrapCtx) -> Report:
    """Fatal preconditions, checked once before any check runs."""

    logger.info("Checking Network Connectivity", extra={"status": SECTION})
    if not is_online(runner=ctx.runner):
        raise NetworkUnavailableError("No internet connection detected; downloads are required")
    logger.info("Internet connectivity confirmed", extra={"status": DONE})

    report = Report()
    installed = ensure_package_manager(ctx)
    if installed is True and ctx.dry_run:
        logger.info("Homebrew would be installed", extra={"status": SKIP})
        report = report.add(Outcome(Bucket.SKIPPED, "Homebrew", "homebrew", detail="dry run"))
    elif installed is True:
        logger.info("Homebrew installed successfully", extra={"status": DONE})
        report = report.add(Outcome(Bucket.INSTALLED, "Homebrew", "homebrew"))
    elif installed is False:
        logger.info("Homebrew already installed", extra={"status": SKIP})
        report = report.add(Outcome(Bucket.SKIPPED, "Homebrew", "homebrew"))
    return report


def run(
    *,
    config_path: Optional[str] = None,
    log_path: str = DEFAULT_LOG_PATH,
    report_path: Optional[str] = None,
    dry_run: bool = False,
    only: Optional[Sequence[str]] = None,
    verbose: bool = False,
) -> Report:
    """Provision this host. Raises FatalPreconditionError before any check runs."""

    configure_logging(log_path=log_path, level=logging.DEBUG if verbose else logging.INFO)
    cfg = load_config(config_path)

    logger.info("Detecting Environment", extra={"status": SECTION})
    identity = resolve_os_identity()
    logger.info("Detected OS: %s", identity.value)

    ctx = BootstrapCtx(caps=capabilities_for(identity), cfg=cfg, dry_run=dry_run)
    try:
        checks = build_checks(cfg)
        validate_order(checks)
        check_paths(checks, ctx)
    except KeyError as e:
        raise ConfigError(f"manifest entry is missing key {e}") from e
    except (TypeError, ValueError) as e:
        raise ConfigError(str(e)) from e

    report = preflight(ctx)
    report = run_sequence(checks, ctx, only=only, report=report)

    print_report(report)
    if report_path:
        try:
            save_report(report_path, report)
        except OSError as e:
            logger.error("Could not write report %s: %s", report_path, e)
    return report


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="zsh-bootstrap", description="Set up zsh, Oh My Zsh, fonts and CLI tools.")
    p.add_argument("--config", default=None, help="Path to a YAML manifest (default: bundled)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to the log file")
    p.add_argument("--report", default=None, help="Write the structured report here (json|yaml)")
    p.add_argument("--dry-run", action="store_true", help="Log commands and edits without applying them")
    p.add_argument("--only", nargs="+", default=None, metavar="CHECK_ID", help="Run only these checks")
    p.add_argument("-v", "--verbose", action="store_true", help="Show command output")

    args = p.parse_args(argv)

    try:
        run(
            config_path=args.config,
            log_path=args.log,
            report_path=args.report,
            dry_run=bool(args.dry_run),
            only=args.only,
            verbose=bool(args.verbose),
        )
    except FatalPreconditionError as e:
        logger.error("%s", e)
        return e.exit_code
    except (ConfigError, FileNotFoundError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
