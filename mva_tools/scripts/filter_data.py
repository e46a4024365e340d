#!/usr/bin/env python3
"""
Command-line script for splitting an event tree into Signal and Background.
"""

import argparse
import logging
import sys

from mva_tools.data.selectors import split_tree_by_filter
from mva_tools.physics.interactions import (
    CVN_BRANCHES,
    DEFAULT_EXCLUSION,
    InteractionType,
    filter_input_data,
)
from mva_tools.utils.logging import setup_logging


def main():
    """Main entry point for mva-filter command."""
    parser = argparse.ArgumentParser(
        description="Split an event tree into Signal and Background trees",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("--input", "-i", required=True, help="Input ROOT file")

    parser.add_argument(
        "--tree", "-t", default="analysistree/atmoOutput", help="Input tree name"
    )

    parser.add_argument("--output", "-o", required=True, help="Output ROOT file")

    parser.add_argument(
        "--branches",
        "-b",
        nargs="+",
        default=CVN_BRANCHES + ["TrueNuE"],
        help="Branches copied to the output trees",
    )

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--signal-type",
        choices=[t.value for t in InteractionType],
        default=InteractionType.NUMU.value,
        help="Interaction type treated as signal",
    )
    selection.add_argument(
        "--signal-filter",
        help='Custom signal expression, e.g. "TrueNuE > 2 && IsCC"',
    )

    parser.add_argument(
        "--exclusion",
        default=DEFAULT_EXCLUSION,
        help="Events failing this expression are dropped",
    )

    parser.add_argument(
        "--include-cvn-max",
        action="store_true",
        help="Add CVN arg-max and linear-cut decision branches",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args()

    log_level = "DEBUG" if args.verbose else "INFO"
    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    try:
        if args.signal_filter:
            n_signal, n_background = split_tree_by_filter(
                args.input,
                args.tree,
                args.output,
                args.branches,
                args.signal_filter,
                args.exclusion,
            )
        else:
            n_signal, n_background = filter_input_data(
                args.input,
                args.tree,
                args.output,
                args.branches,
                args.signal_type,
                include_cvn_max=args.include_cvn_max,
                exclusion_filter=args.exclusion,
            )

        logger.info(
            f"Wrote {n_signal} Signal and {n_background} Background events to {args.output}"
        )

    except Exception as e:
        logger.error(f"Filtering failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
