#!/usr/bin/env python3
"""
Command-line script for applying a trained classifier to a ROOT tree.
"""

import argparse
import logging
import sys

from mva_tools.pipeline.inference import ModelReader
from mva_tools.utils.logging import setup_logging


def main():
    """Main entry point for mva-apply command."""
    parser = argparse.ArgumentParser(
        description="Apply a trained classifier and its cut to a ROOT tree",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--weights", "-w", required=True, help="Path to trained weight file"
    )

    parser.add_argument(
        "--method", "-m", required=True, help="Method name, e.g. BDT_AdaBoost_demo"
    )

    parser.add_argument("--input", "-i", required=True, help="Input ROOT file")

    parser.add_argument("--tree", "-t", required=True, help="Tree to score")

    parser.add_argument("--output", "-o", required=True, help="Output ROOT file")

    parser.add_argument(
        "--cut", type=float, required=True, help="Score threshold for the decision branch"
    )

    parser.add_argument(
        "--variables",
        nargs="+",
        default=["CVNScoreNuE", "CVNScoreNuMu", "CVNScoreNC"],
        help="Classifier input variables, in training order",
    )

    parser.add_argument(
        "--branches",
        nargs="+",
        help="Tree branches bound to the variables (defaults to the variable names)",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args()

    log_level = "DEBUG" if args.verbose else "INFO"
    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    try:
        reader = ModelReader()
        for variable in args.variables:
            reader.add_variable(variable)

        reader.book_method(args.method, args.weights)
        n_pass = reader.apply_to_tree(
            args.input, args.tree, args.method, args.output, args.cut, args.branches
        )

        logger.info(f"{n_pass} events pass {args.method} > {args.cut}")

    except Exception as e:
        logger.error(f"Inference failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
