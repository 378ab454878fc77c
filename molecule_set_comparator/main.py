"""
Main script for molecule set comparison.

This script provides a command-line interface for comparing two molecule
sets pairwise and writing the job output, the text summary report and
histogram charts.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .charts import generate_histogram_report, save_histogram_image
from .comparison import ComparisonInputError
from .config import PersistenceFailure, UserPreferences, load_preferences, save_preferences
from .features import FEATURES, BinLabelType, ComparisonFeature, get_feature
from .histogram import InvalidConfiguration
from .job import LAYOUTS, JobResult, run_job, save_job, save_summary_report

logger = logging.getLogger(__name__)

SUMMARY_REPORT_FILE_NAME = "summaryReport.txt"
HISTOGRAM_REPORT_FILE_NAME = "histogram_report.pdf"


def print_features() -> None:
    """Print the table of available comparison features."""
    width = max(len(feature.key) for feature in FEATURES)
    for feature in FEATURES:
        kind = "continuous" if feature.is_continuous else "discrete"
        print(f"{feature.key:<{width}}  {kind:<10}  {feature.name}: {feature.description}")


def validate_paths(args: argparse.Namespace) -> bool:
    """
    Validate that both molecule set files exist.

    Args:
        args: Parsed command line arguments

    Returns:
        bool: True if all paths are valid
    """
    required_paths = [
        (args.molecule_set_1, "First molecule set file"),
        (args.molecule_set_2, "Second molecule set file"),
    ]

    all_valid = True
    for path, description in required_paths:
        if path is None:
            logger.error("%s is required", description)
            all_valid = False
        elif not os.path.isfile(path):
            logger.error("%s not found: %s", description, path)
            all_valid = False

    return all_valid


def setup_preferences(args: argparse.Namespace) -> UserPreferences:
    """
    Load preferences and apply command line overrides.

    Args:
        args: Parsed command line arguments

    Returns:
        UserPreferences: Preferences for the job
    """
    preferences = load_preferences(args.preferences)

    if args.threads is not None:
        preferences.number_of_parallel_threads = args.threads
    if args.bins is not None:
        preferences.default_number_of_bins = args.bins
    if args.max_pairs is not None:
        preferences.maximal_number_of_molecule_pairs_to_save = args.max_pairs
    if args.image_quality is not None:
        preferences.image_quality = args.image_quality
    preferences.validate()

    if args.save_preferences:
        path = save_preferences(preferences, args.preferences)
        print(f"Saved preferences to {path}")

    return preferences


def select_features(keys: Optional[List[str]]) -> List[ComparisonFeature]:
    """Resolve feature keys given on the command line (all features if None)."""
    if not keys:
        return list(FEATURES)
    try:
        return [get_feature(key) for key in keys]
    except KeyError as e:
        raise ComparisonInputError(str(e.args[0])) from e


def print_job_summary(job: JobResult) -> None:
    print("\nJob summary:")
    print(f"  Molecule pairs compared: {job.number_of_pairs}")
    print(f"  Failed comparisons: {len(job.failures)}")
    print(f"  Unpaired inputs: {job.number_of_unpaired_inputs}")
    print(f"  Features: {len(job.features)}")
    print(f"  Computing time: {job.computing_time:.2f}s")


def write_outputs(job: JobResult, args: argparse.Namespace) -> None:
    """Write the job output, the summary report and the requested charts."""
    output_path = Path(args.output_dir)
    save_job(job, output_path)
    print(f"Saved job output to {output_path}")

    report_file = save_summary_report(job, output_path / SUMMARY_REPORT_FILE_NAME,
                                      relative=args.relative, layout=args.layout)
    print(f"Saved summary report to {report_file}")

    if args.no_report and not args.images:
        return

    label_type = BinLabelType[args.label_type]
    histograms = job.histograms(relative=args.relative)

    if args.images:
        image_dir = output_path / "images"
        for histogram in histograms:
            save_histogram_image(histogram, image_dir / f"{histogram.feature.key}.{args.images}",
                                 label_type, job.preferences.image_quality)
        print(f"Saved {len(histograms)} histogram images to {image_dir}")

    if not args.no_report:
        pdf_file = generate_histogram_report(histograms, output_path / HISTOGRAM_REPORT_FILE_NAME,
                                             label_type)
        print(f"Generated histogram report: {pdf_file}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare two molecule sets pairwise. Entries of both files are paired "
                    "by position and compared on chemistry descriptors; the distribution "
                    "of each descriptor is reported as a histogram.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "molecule_set_1",
        nargs="?",
        help="First molecule set file (SMILES per line, or SDF)"
    )
    parser.add_argument(
        "molecule_set_2",
        nargs="?",
        help="Second molecule set file (SMILES per line, or SDF)"
    )

    parser.add_argument(
        "--features",
        nargs="+",
        metavar="KEY",
        help="Comparison features to calculate (default: all, see --list-features)"
    )
    parser.add_argument(
        "--list-features",
        action="store_true",
        help="List the available comparison features and exit"
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        help="Directory to save results"
    )
    parser.add_argument(
        "--preferences",
        help="Path to the preferences file (default: MSC_Files/UserPreferences.json)"
    )
    parser.add_argument(
        "--save-preferences",
        action="store_true",
        help="Save the preferences including command line overrides"
    )
    parser.add_argument(
        "--threads",
        type=int,
        help="Number of parallel worker processes (overrides preferences)"
    )
    parser.add_argument(
        "--bins",
        type=int,
        help="Number of histogram bins (overrides preferences)"
    )
    parser.add_argument(
        "--max-pairs",
        type=int,
        help="Maximal number of molecule pairs to save (overrides preferences)"
    )
    parser.add_argument(
        "--image-quality",
        type=float,
        help="Image quality between 0.0 and 1.0 (overrides preferences)"
    )
    parser.add_argument(
        "--relative",
        action="store_true",
        help="Report relative frequencies in percent"
    )
    parser.add_argument(
        "--layout",
        choices=LAYOUTS,
        default="vertical",
        help="Layout of the histogram tables in the summary report"
    )
    parser.add_argument(
        "--images",
        choices=("png", "jpg"),
        help="Also save one histogram image per feature in this format"
    )
    parser.add_argument(
        "--label-type",
        choices=[label_type.name for label_type in BinLabelType],
        default=BinLabelType.INTERVAL.name,
        help="Bin labels used on histogram charts"
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Disable generation of the histogram report (PDF)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main execution function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if args.list_features:
        print_features()
        return

    if not validate_paths(args):
        sys.exit(1)

    try:
        preferences = setup_preferences(args)
        features = select_features(args.features)

        print(f"Comparing {args.molecule_set_1} with {args.molecule_set_2}...")
        job = run_job(args.molecule_set_1, args.molecule_set_2, features, preferences)
        print_job_summary(job)

        write_outputs(job, args)

    except (ComparisonInputError, InvalidConfiguration, PersistenceFailure) as e:
        logger.error("%s", e)
        sys.exit(1)
    except ValueError as e:
        logger.error("Invalid setting: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
