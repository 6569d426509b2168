"""Common CLI helper utilities."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable

from common.config import PipelineConfig, load_config, set_config
from common.errors import PipelineError

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure standard logging format for CLI tools."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the --config and --verbose options every stage accepts."""
    parser.add_argument(
        "--config",
        default=None,
        help="Config name under configs/ or path to a YAML file "
        "(default: $WGR_CONFIG, else built-in defaults)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")


def load_cli_config(args: argparse.Namespace) -> PipelineConfig:
    """Load the config named on the command line and install it process-wide."""
    if getattr(args, "verbose", False):
        logging.getLogger().setLevel(logging.DEBUG)
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)
    set_config(config)
    return config


def run_stage(description: str, stage: Callable[[], object]) -> None:
    """Run a stage, turning fatal pipeline errors into a non-zero exit."""
    logger.info(description)
    try:
        stage()
    except PipelineError as exc:
        logger.error("%s failed: %s", description, exc)
        sys.exit(1)
