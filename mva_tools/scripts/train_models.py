#!/usr/bin/env python3
"""
Command-line script for training Signal/Background classifiers.
"""

import argparse
import logging
import sys

from mva_tools.models.methods import MethodConfig
from mva_tools.pipeline.training import TrainingPipeline
from mva_tools.utils.config import ConfigManager
from mva_tools.utils.logging import setup_logging


def main():
    """Main entry point for mva-train command."""
    parser = argparse.ArgumentParser(
        description="Train classifiers on a Signal/Background ROOT file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("--config", "-c", help="Configuration file path")

    parser.add_argument(
        "--data-path",
        "-d",
        required=True,
        help="ROOT file with Signal and Background trees",
    )

    parser.add_argument(
        "--output-dir",
        "-o",
        help="Output directory for weights and test trees (overrides config)",
    )

    parser.add_argument(
        "--suffix", "-s", help="Suffix appended to every method name (overrides config)"
    )

    parser.add_argument(
        "--train-ratio",
        type=float,
        help="Fraction of signal events used for training (overrides config)",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args()

    log_level = "DEBUG" if args.verbose else "INFO"
    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    try:
        if args.config:
            config = ConfigManager.load_config(args.config)
        else:
            config = ConfigManager.create_default_config()

        training = config.training
        if args.suffix:
            training.method_suffix = args.suffix
        if args.train_ratio is not None:
            training.train_ratio = args.train_ratio
        output_dir = args.output_dir or config.output_dir

        pipeline = TrainingPipeline(output_dir, training.random_state, training.n_threads)
        results = pipeline.train_classification_model(
            training.method_suffix,
            args.data_path,
            training.filtered_file_name,
            training.input_variables,
            training.spectators,
            [MethodConfig.from_dict(m) for m in training.methods],
            training.train_ratio,
        )

        for name, method in results["methods"].items():
            logger.info(f"{name}: weights {method['weight_file']} | test AUC {method['test_auc']:.4f}")

        logger.info(f"Scored test sample written to: {results['filtered_file']}")
        logger.info("Model training complete!")

    except Exception as e:
        logger.error(f"Training failed: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
