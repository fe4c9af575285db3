"""CLI entry point: python -m clinical_report"""

import argparse
import logging
import sys

from clinical_report import config
from clinical_report.agent import ClinicalReportAgent
from clinical_report.data.loader import DATASET_REGISTRY
from clinical_report.models.trainer import MODEL_CONFIGS
from clinical_report.utils import set_log_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clinical_report",
        description=(
            "Clinical Classification Report - "
            "EDA, tuned model comparison and a written report for a medical dataset."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m clinical_report\n"
            "  python -m clinical_report --models logistic_regression random_forest --search random\n"
            "  python -m clinical_report --csv heart.csv --target disease --positive-label yes\n"
            "  python -m clinical_report --scaling minmax --test-size 0.3 --cv-folds 10\n"
        ),
    )

    source = parser.add_argument_group("data")
    source.add_argument(
        "--dataset",
        type=str,
        default=config.DEFAULT_DATASET,
        choices=list(DATASET_REGISTRY.keys()),
        help=f"Bundled dataset to analyze (default: {config.DEFAULT_DATASET})",
    )
    source.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Analyze a CSV file instead of a bundled dataset",
    )
    source.add_argument(
        "--target",
        type=str,
        default=None,
        help="Outcome column of the CSV file (required with --csv)",
    )
    source.add_argument(
        "--positive-label",
        type=str,
        default=None,
        help="Outcome value treated as the positive class (default: 1, else minority class)",
    )
    source.add_argument(
        "--drop-columns",
        type=str,
        nargs="+",
        default=None,
        help="Identifier columns to drop from the CSV file",
    )

    modeling = parser.add_argument_group("modeling")
    modeling.add_argument(
        "--models",
        type=str,
        nargs="+",
        default=None,
        choices=list(MODEL_CONFIGS.keys()),
        help="Models to train (default: all available)",
    )
    modeling.add_argument(
        "--scaling",
        type=str,
        default=config.DEFAULT_SCALING,
        choices=config.SCALING_METHODS,
        help=f"Feature scaling method (default: {config.DEFAULT_SCALING})",
    )
    modeling.add_argument(
        "--test-size",
        type=float,
        default=config.DEFAULT_TEST_SIZE,
        help=f"Fraction of data for test set (default: {config.DEFAULT_TEST_SIZE})",
    )
    modeling.add_argument(
        "--cv-folds",
        type=int,
        default=config.DEFAULT_CV_FOLDS,
        help=f"Number of cross-validation folds (default: {config.DEFAULT_CV_FOLDS})",
    )
    modeling.add_argument(
        "--search",
        type=str,
        default=config.DEFAULT_SEARCH,
        choices=config.SEARCH_STRATEGIES,
        help=f"Hyperparameter search strategy (default: {config.DEFAULT_SEARCH})",
    )
    modeling.add_argument(
        "--n-iter",
        type=int,
        default=config.DEFAULT_N_ITER,
        help=f"Candidates per model for random search (default: {config.DEFAULT_N_ITER})",
    )
    modeling.add_argument(
        "--n-jobs",
        type=int,
        default=config.N_JOBS,
        help=f"Parallel workers, -1 for all cores (default: {config.N_JOBS})",
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "--output-dir",
        type=str,
        default=config.OUTPUT_DIR,
        help=f"Directory for output files (default: {config.OUTPUT_DIR})",
    )
    output.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip figure generation",
    )
    verbosity = output.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")

    parser.add_argument(
        "--list-models",
        action="store_true",
        help="List all available models and exit",
    )
    parser.add_argument(
        "--list-datasets",
        action="store_true",
        help="List all available datasets and exit",
    )
    return parser


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_models:
        print("Available models:")
        for name in MODEL_CONFIGS:
            cls, _ = MODEL_CONFIGS[name]
            print(f"  {name:<25} ({cls.__name__})")
        return

    if args.list_datasets:
        print("Available datasets:")
        for name, info in DATASET_REGISTRY.items():
            print(f"  {name:<20} {info['description']}")
        return

    if args.csv and not args.target:
        parser.error("--target is required with --csv")

    if args.quiet:
        set_log_level(logging.WARNING)
    elif args.verbose:
        set_log_level(logging.DEBUG)

    try:
        agent = ClinicalReportAgent(
            dataset=args.dataset,
            csv_path=args.csv,
            target_column=args.target,
            positive_label=args.positive_label,
            drop_columns=args.drop_columns,
            models=args.models,
            scaling=args.scaling,
            test_size=args.test_size,
            cv_folds=args.cv_folds,
            search=args.search,
            n_iter=args.n_iter,
            n_jobs=args.n_jobs,
            output_dir=args.output_dir,
            make_plots=not args.no_plots,
        )
        agent.run()
    except Exception as e:
        print(f"\nReport failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
