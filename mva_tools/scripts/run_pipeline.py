#!/usr/bin/env python3
"""
Command-line script for the full training and evaluation workflow.
"""

import argparse
import logging
import sys
from pathlib import Path

from mva_tools.pipeline.analysis import AnalysisPipeline
from mva_tools.utils.config import ConfigManager
from mva_tools.utils.io import create_timestamped_dir
from mva_tools.utils.logging import setup_logging


def main():
    """Main entry point for mva-analyze command."""
    parser = argparse.ArgumentParser(
        description="Train classifiers, find optimal cuts and produce performance reports",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("--config", "-c", help="Configuration file path")

    parser.add_argument(
        "--data-path",
        "-d",
        help="Signal/Background ROOT file (defaults to the configured filtered file)",
    )

    parser.add_argument(
        "--output-dir", "-o", help="Output directory (overrides config)"
    )

    parser.add_argument(
        "--timestamped",
        action="store_true",
        help="Write into a new run_YYYYMMDD_HHMM directory below the output directory",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.config:
        config = ConfigManager.load_config(args.config)
    else:
        config = ConfigManager.create_default_config()

    log_level = "DEBUG" if args.verbose else config.log_level
    setup_logging(log_level, log_dir=str(Path(args.output_dir or config.output_dir) / "logs"))
    logger = logging.getLogger(__name__)

    try:
        if args.output_dir:
            config.output_dir = args.output_dir
        if args.timestamped:
            config.output_dir = create_timestamped_dir(config.output_dir)

        issues = ConfigManager.validate_config(config)
        if issues:
            for issue in issues:
                logger.error(f"Configuration issue: {issue}")
            sys.exit(1)

        ConfigManager.save_config(config, f"{config.output_dir}/config_used.yaml")

        summary = AnalysisPipeline(config).run(args.data_path)

        for name, cut in summary["optimal_cuts"].items():
            logger.info(f"{name}: optimal cut {cut:.4f}")
        logger.info(f"Results logged to: {summary['results_file']}")

    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
