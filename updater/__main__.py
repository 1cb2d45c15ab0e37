"""
Updater CLI entry point - implements the iso-assets-update command
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, LogsConfig, UpdaterConfig
from .run import UpdateService

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def _attach_file_logging(log_path: Path, level: str) -> None:
    """Attach a file handler to root logger if not already present."""
    root = logging.getLogger()
    log_path = log_path.resolve()
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_path:
            return

    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(getattr(logging, level))
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    root.addHandler(file_handler)


def setup_logging(logs: LogsConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, logs.log_level),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT
    )
    if logs.log_file:
        _attach_file_logging(Path(logs.log_file), logs.log_level)


def load_config(args: argparse.Namespace) -> UpdaterConfig:
    """Load the config file (if any) and apply command-line overrides"""
    config = UpdaterConfig.from_yaml(args.config) if args.config else UpdaterConfig()

    if args.output_dir:
        config.output_dir = args.output_dir
    if args.log_level:
        config.logs = LogsConfig(log_level=args.log_level, log_file=config.logs.log_file)
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iso-assets-update",
        description="Download the ISO 639-3 language table and ISO 3166 country JSON"
    )
    parser.add_argument(
        "--config",
        required=False,
        help="Path to configuration YAML (optional)"
    )
    parser.add_argument(
        "--output-dir",
        required=False,
        help="Directory receiving language.tab and country.json (default: current directory)"
    )
    parser.add_argument(
        "--log-level",
        required=False,
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except (ConfigError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logs)
    return UpdateService(config).run()


if __name__ == "__main__":
    sys.exit(main())
