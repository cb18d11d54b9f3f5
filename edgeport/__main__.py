import argparse
import logging
import sys
from pathlib import Path

from .core.analysis import analyze_project
from .core.config import ConfigError, get_settings
from .core.config.settings import LOG_LEVELS
from .core.conversion import ProjectConverter
from .core.transform import transform_source


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


logger = logging.getLogger(__name__)


def _cmd_analyze(args, settings) -> int:
    result = analyze_project(Path(args.source), _function_names(args))
    for fn in result.functions:
        shared = " (uses _shared)" if fn.uses_shared else ""
        print(f"{fn.name}: {fn.entry_file}, {len(fn.files)} file(s){shared}")
    print(f"Dependencies: {', '.join(sorted(result.dependencies)) or '-'}")
    print(f"Env variables: {', '.join(sorted(result.env_vars)) or '-'}")
    return 0


def _cmd_convert(args, settings) -> int:
    output = Path(args.output) if args.output else None
    report = ProjectConverter(settings).convert(Path(args.source), output, _function_names(args))
    logger.info(f"Converted {report.functions_converted} function(s)")
    for warning in report.warnings:
        logger.warning(warning)
    for label in report.not_transformed:
        logger.warning(f"Not transformed: {label}")
    return 1 if report.errors else 0


def _cmd_transform(args, settings) -> int:
    path = Path(args.file)
    sys.stdout.write(transform_source(str(path), path.read_text(encoding="utf-8"), settings.transform))
    return 0


def _function_names(args):
    if not getattr(args, "functions", None):
        return None
    return [name.strip() for name in args.functions.split(",") if name.strip()]


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="edgeport",
        description="Convert Supabase edge functions into server handlers",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override the configured log level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="List functions, dependencies and env vars")
    analyze.add_argument("source", help="Project root containing supabase/functions")
    analyze.add_argument("--functions", help="Comma-separated function names")

    convert = subparsers.add_parser("convert", help="Convert edge functions into backend handlers")
    convert.add_argument("source", help="Project root containing supabase/functions")
    convert.add_argument("--output", help="Output directory (default: <source>/backend)")
    convert.add_argument("--functions", help="Comma-separated function names")

    transform = subparsers.add_parser("transform", help="Print one transformed file")
    transform.add_argument("file", help="Source file to transform")

    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or settings.log_level)

    handlers = {"analyze": _cmd_analyze, "convert": _cmd_convert, "transform": _cmd_transform}
    try:
        return handlers[args.command](args, settings)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
