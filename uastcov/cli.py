"""CLI entrypoint for the UAST usage audit."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import load_config
from .errors import AuditError
from .git.sync import SyncProgress
from .logging import configure_logging, get_logger
from .pipeline import AuditPipeline


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uastcov",
        description=(
            "Report, for every Babelfish driver, how often each UAST type is used "
            "in its fixtures and its mapping code."
        ),
    )
    parser.add_argument(
        "--pprof",
        action="store_true",
        help="Start the diagnostics HTTP endpoint while the audit runs.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .uastcov.yml or the directory containing it (defaults to current directory).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run the audit and write the Markdown report to stdout."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))
    logger = get_logger("cli")

    try:
        config = load_config(Path(args.config))
    except AuditError as exc:
        parser.exit(1, f"uastcov failed: {exc}\n")

    progress = SyncProgress()
    if args.pprof:
        from .service import start_diagnostics_server

        start_diagnostics_server(progress, host=config.pprof.host, port=config.pprof.port)

    try:
        result = AuditPipeline(config, progress=progress).run()
    except AuditError as exc:
        parser.exit(1, f"uastcov failed: {exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        logger.debug("unexpected failure", exc_info=True)
        parser.exit(1, f"uastcov failed: {exc}\nRun with --verbose for more details.\n")

    sys.stdout.write(result.report)
    sys.stdout.flush()


if __name__ == "__main__":
    main(sys.argv[1:])
