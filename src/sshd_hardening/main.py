"""CLI entry point for sshd-hardening."""

import argparse
import os
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from sshd_hardening import __version__
from sshd_hardening.config import HardeningConfig
from sshd_hardening.exceptions import HardenerError
from sshd_hardening.guard import SafetyGuard
from sshd_hardening.log import configure_logging
from sshd_hardening.orchestrator import ApplyOrchestrator, exit_code
from sshd_hardening.paths import PathResolver, resolver_for
from sshd_hardening.profiles import directives_for
from sshd_hardening.services import HostKeyProvisioner, ServiceController
from sshd_hardening.types import ApplyResult, ConfigKind, OutcomeStatus, Platform, Target
from sshd_hardening.utils.command import CommandExecutor
from sshd_hardening.utils.file import FileManager
from sshd_hardening.validators import build_validator

STATUS_MARKS = {
    OutcomeStatus.SUCCESS: "✅",
    OutcomeStatus.ROLLED_BACK: "↩️ ",
    OutcomeStatus.FAILED: "❌",
    OutcomeStatus.ROLLBACK_FAILED: "🚨",
}


def positive_int(text: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="sshd-hardening - apply hardened OpenSSH settings with rollback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Harden sshd_config on RHEL 8, restart sshd if it changed
  sudo sshd-harden --platform rhel8 --restart

  # Also harden the client configuration on macOS
  sudo sshd-harden --platform macos --client

  # Show what would change
  sshd-harden --dry-run -v

Environment variables:
  ALG_CIPHERS, ALG_MACS, ALG_KEX_ALGORITHMS, ALG_HOST_KEY_ALGORITHMS
                        - Comma-separated algorithm lists
  SSH_*                 - Hardening flags (SSH_MAX_AUTH_TRIES, ...)
  VALIDATE_TIMEOUT      - Validator timeout in seconds
  BACKUP_NAMING         - "date" (default) or "timestamp"
  APPLY_MAX_WORKERS     - Parallel targets
  LOG_LEVEL, LOG_FILE, LOG_JSON
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--platform",
        choices=[p.value for p in Platform],
        default=Platform.LINUX.value,
        help="Target platform (default: linux)",
    )

    parser.add_argument(
        "--root",
        type=Path,
        default=Path("/"),
        help="Filesystem root the configuration lives under",
    )

    parser.add_argument(
        "--no-server",
        dest="server",
        action="store_false",
        help="Do not harden sshd_config",
    )

    parser.add_argument(
        "--client",
        action="store_true",
        help="Also harden ssh_config",
    )

    parser.add_argument(
        "--target",
        dest="targets",
        type=Path,
        action="append",
        default=[],
        help="Additional sshd configuration file (repeatable)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show changes without applying them",
    )

    parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip the external configuration check",
    )

    parser.add_argument(
        "--restart",
        action="store_true",
        help="Restart the SSH service after a successful server change",
    )

    parser.add_argument(
        "--generate-host-keys",
        action="store_true",
        help="Create the ed25519 host key if it is missing",
    )

    parser.add_argument(
        "--backup-naming",
        choices=["date", "timestamp"],
        help="Backup suffix scheme (overrides config/env)",
    )

    parser.add_argument(
        "--workers",
        type=positive_int,
        help="Targets processed in parallel (overrides config/env)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging and show line changes",
    )

    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    args = parser.parse_args(argv)
    args.platform = Platform(args.platform)
    return args


def load_config(args: argparse.Namespace) -> HardeningConfig:
    """Load configuration from environment and apply CLI overrides.

    Args:
        args: Parsed command-line arguments

    Returns:
        Configuration object
    """
    config = HardeningConfig.from_env()

    if args.no_validate:
        config.validation.enabled = False

    if args.backup_naming:
        config.backup.naming = args.backup_naming

    if args.workers:
        config.apply.max_workers = args.workers

    if args.json_logs:
        config.logging.json_format = True

    if args.verbose:
        config.logging.level = "DEBUG"
    elif args.quiet:
        config.logging.level = "ERROR"

    return config


def build_targets(
    args: argparse.Namespace,
    config: HardeningConfig,
    executor: CommandExecutor,
) -> List[Target]:
    """Turn CLI selections into targets with their directives and validators."""
    server = directives_for(ConfigKind.SERVER, args.platform, config)
    server_validator = build_validator(ConfigKind.SERVER, executor, config.validation)

    targets: List[Target] = []
    if args.server:
        targets.append(Target(ConfigKind.SERVER, server, server_validator))

    for path in args.targets:
        targets.append(Target(ConfigKind.SERVER, server, server_validator, path=path))

    if args.client:
        targets.append(
            Target(
                ConfigKind.CLIENT,
                directives_for(ConfigKind.CLIENT, args.platform, config),
                build_validator(ConfigKind.CLIENT, executor, config.validation),
            )
        )

    return targets


def print_result(result: ApplyResult, verbose: bool = False) -> None:
    """Print one target's outcome."""
    mark = STATUS_MARKS[result.status]
    details = [
        f"{len(result.changed_lines)} changed",
        f"validation {result.validation.value}",
    ]
    if result.dry_run:
        details.append("dry run")
    if result.backup_path is not None:
        details.append(f"backup {result.backup_path}")

    print(f"{mark} {result.status.value:<16} {result.path} ({', '.join(details)})")

    if result.error:
        print(f"    error: {result.error}", file=sys.stderr)
    if result.diagnostics and not result.ok:
        for line in result.diagnostics.splitlines():
            print(f"    {line}", file=sys.stderr)

    if verbose or result.dry_run:
        for change in result.changed_lines:
            if change.before is not None:
                print(f"    - {change.before}")
            print(f"    + {change.after}")


def restart_if_needed(
    results: Sequence[ApplyResult],
    resolver: PathResolver,
    executor: CommandExecutor,
) -> None:
    """Restart sshd when the main server configuration changed and passed."""
    server_path = resolver.config_path(ConfigKind.SERVER)
    for result in results:
        if result.path == server_path and result.ok and result.changed_lines:
            ServiceController(executor, resolver).restart()
            return


def main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Main entry point for CLI.

    Raises:
        SystemExit: Always exits with appropriate code
    """
    args = parse_args(argv)

    try:
        config = load_config(args)
        issues = config.validate_config()
        if issues:
            for issue in issues:
                print(f"Configuration issue: {issue}", file=sys.stderr)
            sys.exit(1)

        configure_logging(
            level=config.logging.level,
            json_format=config.logging.json_format,
            log_file=config.logging.file,
        )

        if args.dry_run and not args.quiet:
            print("🔍 DRY RUN MODE - No changes will be applied\n")

        resolver = resolver_for(args.platform, args.root)
        executor = CommandExecutor(use_sudo=os.geteuid() != 0, dry_run=args.dry_run)

        if args.generate_host_keys and not args.dry_run:
            key_path = resolver.under_root(
                str(config.ssh.host_key_dir / "ssh_host_ed25519_key")
            )
            HostKeyProvisioner(executor).ensure_ed25519(key_path)

        guard = SafetyGuard(
            FileManager(naming=config.backup.naming, retry_delay=config.apply.retry_delay),
            dry_run=args.dry_run,
        )
        orchestrator = ApplyOrchestrator(
            guard, resolver, max_workers=config.apply.max_workers
        )

        results = orchestrator.run(build_targets(args, config, executor))

        for result in results:
            if not args.quiet or not result.ok:
                print_result(result, verbose=args.verbose)

        if args.restart and not args.dry_run:
            restart_if_needed(results, resolver, executor)

        sys.exit(exit_code(results))

    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user", file=sys.stderr)
        sys.exit(130)

    except HardenerError as e:
        print(f"\n❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
