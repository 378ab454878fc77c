"""
Comparison job execution and persistence.

This module runs a complete comparison job (reading both molecule sets,
comparing all pairs on a worker pool) and holds its results. It also
saves and loads job output directories and writes the text summary report
and molecule pair lists.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from multiprocessing import Pool
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .comparison import (ComparisonInputError, InputType, compare_molecule_pair,
                         pair_molecule_sets, read_molecule_set)
from .config import (JOB_INFO_FILE_NAME, MOLECULE_SET_1_FILE_NAME, MOLECULE_SET_2_FILE_NAME,
                     MSC_VERSION, OUTPUT_FILE_NAME, README_FILE_NAME, PersistenceFailure,
                     UserPreferences)
from .features import ComparisonFeature, get_feature
from .formatting import (get_general_info_block, get_horizontal_histogram_block,
                         get_result_summary_report_header, get_vertical_histogram_block)
from .histogram import HistogramData, assign_bins, build_histogram
from .models import ComparisonResult, empty_feature_array

logger = logging.getLogger(__name__)

LAYOUTS = ("vertical", "horizontal")


def process_molecule_pair(args: Tuple) -> ComparisonResult:
    """
    Compare a single molecule pair without class dependencies to avoid pickling issues.

    Args:
        args: Tuple containing (identifier, input_1, input_2, type_1, type_2, feature_identifiers)

    Returns:
        ComparisonResult: Result of the comparison
    """
    identifier, input_1, input_2, type_1, type_2, feature_identifiers = args
    features = [get_feature(i) for i in feature_identifiers]
    return compare_molecule_pair(identifier, input_1, input_2, type_1, type_2, features)


@dataclass
class JobResult:
    """
    Results of one comparison job.

    Attributes:
        input_file_1: Path of the first molecule set file
        input_file_2: Path of the second molecule set file
        features: Compared features
        results: Successful comparisons in pair order
        failures: Comparisons that could not be completed
        start_time: Time the job started
        finish_time: Time the job finished
        number_of_unpaired_inputs: Entries without a partner in the other file
        preferences: Preferences the job runs with
    """
    input_file_1: str
    input_file_2: str
    features: List[ComparisonFeature]
    results: List[ComparisonResult]
    failures: List[ComparisonResult] = field(default_factory=list)
    start_time: datetime = field(default_factory=datetime.now)
    finish_time: datetime = field(default_factory=datetime.now)
    number_of_unpaired_inputs: int = 0
    preferences: UserPreferences = field(default_factory=UserPreferences)

    @property
    def number_of_pairs(self) -> int:
        return len(self.results)

    @property
    def computing_time(self) -> float:
        """Duration of the job in seconds."""
        return (self.finish_time - self.start_time).total_seconds()

    def values(self, feature: ComparisonFeature) -> np.ndarray:
        """Get the comparison values of one feature over all pairs."""
        return np.array([result.difference(feature) for result in self.results], dtype=float)

    def histogram(self, feature: ComparisonFeature, number_of_bins: Optional[int] = None,
                  bin_borders: Optional[Sequence[float]] = None, relative: bool = False,
                  lower_border: Optional[float] = None,
                  upper_border: Optional[float] = None) -> HistogramData:
        """
        Build the histogram of one feature.

        Args:
            feature: Compared feature
            number_of_bins: Number of bins (default from preferences, or
                derived from bin_borders when they are given)
            bin_borders: Explicit bin borders
            relative: Use relative frequencies
            lower_border: Lower end of the automatic bin range
            upper_border: Upper end of the automatic bin range

        Returns:
            HistogramData: The histogram
        """
        if number_of_bins is None:
            if bin_borders is not None:
                number_of_bins = max(len(bin_borders) - 1, 0)
            else:
                number_of_bins = self.preferences.default_number_of_bins
        return build_histogram(self.values(feature), feature, number_of_bins,
                               bin_borders=bin_borders, relative=relative,
                               lower_border=lower_border, upper_border=upper_border)

    def histograms(self, number_of_bins: Optional[int] = None,
                   relative: bool = False) -> List[HistogramData]:
        """Build the automatic histograms of all compared features."""
        return [self.histogram(feature, number_of_bins, relative=relative)
                for feature in self.features]

    def pairs_in_bin(self, histogram: HistogramData, index: int) -> List[ComparisonResult]:
        """
        Get the molecule pairs counted in one bin of a histogram.

        Args:
            histogram: Histogram of one of the job's features
            index: Bin index

        Returns:
            List[ComparisonResult]: Results whose value falls in the bin
        """
        if not 0 <= index < histogram.number_of_bins:
            raise IndexError(f"Bin index {index} out of range for {histogram.number_of_bins} bins")
        values = self.values(histogram.feature)
        finite = np.isfinite(values)
        bins = np.full(len(values), -1)
        bins[finite] = assign_bins(histogram.bin_borders, values[finite])
        return [result for result, bin_index in zip(self.results, bins) if bin_index == index]

    def to_frame(self, include_failures: bool = False) -> pd.DataFrame:
        """
        Get one row per molecule pair.

        Columns are identifier, molecule_1, molecule_2, reason_of_failure and
        per feature the comparison value (<key>) and both molecule values
        (<key>_1, <key>_2).
        """
        rows = list(self.results)
        if include_failures:
            rows = sorted(rows + list(self.failures), key=lambda r: r.identifier)

        data: Dict[str, list] = {
            'identifier': [r.identifier for r in rows],
            'molecule_1': [r.molecule_1 for r in rows],
            'molecule_2': [r.molecule_2 for r in rows],
            'reason_of_failure': [r.reason_of_failure for r in rows],
        }
        for feature in self.features:
            data[feature.key] = [r.differences[feature.identifier] for r in rows]
            data[f"{feature.key}_1"] = [r.values_1[feature.identifier] for r in rows]
            data[f"{feature.key}_2"] = [r.values_2[feature.identifier] for r in rows]
        return pd.DataFrame(data)

    def summary_report_lines(self, relative: bool = False, layout: str = "vertical",
                             number_of_bins: Optional[int] = None) -> List[str]:
        """
        Create the text summary report: header, general information and
        one histogram block per feature.
        """
        if layout not in LAYOUTS:
            raise ValueError(f"layout must be one of {LAYOUTS}, got {layout!r}")
        block = get_vertical_histogram_block if layout == "vertical" else get_horizontal_histogram_block

        lines = get_result_summary_report_header()
        lines += get_general_info_block(self.finish_time, self.computing_time, self.number_of_pairs,
                                        self.input_file_1, self.input_file_2)
        for histogram in self.histograms(number_of_bins, relative):
            lines += block(histogram)
        return lines


def _resolve_features(features: Iterable[Union[ComparisonFeature, int, str]]) -> List[ComparisonFeature]:
    resolved = []
    for feature in features:
        try:
            resolved.append(get_feature(feature))
        except KeyError as e:
            raise ComparisonInputError(str(e.args[0])) from e
    return sorted(set(resolved), key=lambda f: f.identifier)


def run_job(input_file_1: Union[str, Path], input_file_2: Union[str, Path],
            features: Iterable[Union[ComparisonFeature, int, str]],
            preferences: Optional[UserPreferences] = None,
            input_type_1: Optional[InputType] = None,
            input_type_2: Optional[InputType] = None) -> JobResult:
    """
    Run a comparison job.

    Both molecule set files are read and paired by position, and every pair
    is compared on the selected features. With more than one parallel
    thread configured the pairs are compared on a process pool.

    Args:
        input_file_1: First molecule set file (SMILES or SDF)
        input_file_2: Second molecule set file (SMILES or SDF)
        features: Features to compare (objects, identifiers or keys)
        preferences: User preferences (defaults if None)
        input_type_1: Format of the first file (detected from the extension if None)
        input_type_2: Format of the second file (detected from the extension if None)

    Returns:
        JobResult: Results of the job

    Raises:
        ComparisonInputError: If there are no features, no readable input
            files, no molecule pairs or no successful comparison
    """
    if preferences is None:
        preferences = UserPreferences()

    selected = _resolve_features(features)
    if not selected:
        raise ComparisonInputError("No comparison features selected")

    for path in (input_file_1, input_file_2):
        if not Path(path).is_file():
            raise ComparisonInputError(f"Molecule set file not found: {path}")

    start_time = datetime.now()
    type_1 = input_type_1 or InputType.from_path(input_file_1)
    type_2 = input_type_2 or InputType.from_path(input_file_2)
    entries_1 = read_molecule_set(input_file_1, type_1)
    entries_2 = read_molecule_set(input_file_2, type_2)

    pairs, number_of_unpaired_inputs = pair_molecule_sets(entries_1, entries_2)
    if not pairs:
        raise ComparisonInputError("The input files do not contain any molecule pair")
    if number_of_unpaired_inputs:
        logger.warning("%d inputs have no partner in the other file and are skipped",
                       number_of_unpaired_inputs)

    feature_identifiers = [feature.identifier for feature in selected]
    args_list = [
        (identifier, input_1, input_2, type_1, type_2, feature_identifiers)
        for identifier, input_1, input_2 in pairs
    ]

    n_proc = preferences.number_of_parallel_threads
    logger.info("Comparing %d molecule pairs on %d features using %d worker(s)",
                len(args_list), len(selected), n_proc)

    if n_proc > 1 and len(args_list) > 1:
        chunksize = max(1, len(args_list) // (n_proc * 4))
        with Pool(n_proc) as pool:
            all_results = pool.map(process_molecule_pair, args_list, chunksize=chunksize)
    else:
        all_results = [process_molecule_pair(args) for args in args_list]

    results = [result for result in all_results if not result.has_failed]
    failures = [result for result in all_results if result.has_failed]
    for failure in failures:
        logger.warning("Pair %d (%s, %s) failed: %s", failure.identifier,
                       failure.molecule_1, failure.molecule_2, failure.reason_of_failure)
    if not results:
        raise ComparisonInputError("None of the molecule pairs could be compared")

    job = JobResult(
        input_file_1=str(input_file_1),
        input_file_2=str(input_file_2),
        features=selected,
        results=results,
        failures=failures,
        start_time=start_time,
        finish_time=datetime.now(),
        number_of_unpaired_inputs=number_of_unpaired_inputs,
        preferences=preferences,
    )
    logger.info("Compared %d pairs (%d failed) in %.2fs",
                job.number_of_pairs, len(failures), job.computing_time)
    return job


def export_molecule_list(results: Sequence[ComparisonResult], filename: Union[str, Path],
                         limit: Optional[int] = None) -> int:
    """
    Write molecule pairs as "<molecule_1> <molecule_2>" lines.

    Args:
        results: Comparison results to export
        filename: Output file
        limit: Maximal number of pairs to write

    Returns:
        int: Number of written pairs
    """
    selected = [result for result in results if result.has_molecule_pair]
    if limit is not None:
        selected = selected[:limit]

    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        for result in selected:
            f.write(f"{result.molecule_1} {result.molecule_2}\n")
    return len(selected)


def save_summary_report(job: JobResult, filename: Union[str, Path], relative: bool = False,
                        layout: str = "vertical", number_of_bins: Optional[int] = None) -> Path:
    """Write the text summary report of a job."""
    lines = job.summary_report_lines(relative=relative, layout=layout,
                                     number_of_bins=number_of_bins)
    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    logger.info("Saved summary report to %s", filepath)
    return filepath


def _write_molecule_set(results: Sequence[ComparisonResult], filename: Path, attribute: str) -> None:
    with open(filename, "w", encoding="utf-8") as f:
        for result in results:
            f.write(getattr(result, attribute) + "\n")


def save_job(job: JobResult, output_dir: Union[str, Path]) -> Path:
    """
    Save a job to an output directory.

    The directory receives the per-pair results as gzip compressed CSV, a
    README with the general job information, a JSON file with the job
    metadata and both molecule sets (at most the configured maximal number
    of molecule pairs).

    Args:
        job: Job to save
        output_dir: Output directory (created if needed)

    Returns:
        Path: The output directory

    Raises:
        PersistenceFailure: If the output cannot be written
    """
    output_path = Path(output_dir)
    limit = job.preferences.maximal_number_of_molecule_pairs_to_save
    saved_results = job.results[:limit]
    if len(job.results) > limit:
        logger.info("Saving the molecules of the first %d of %d pairs", limit, len(job.results))

    job_info = {
        'version': MSC_VERSION,
        'inputFile1': job.input_file_1,
        'inputFile2': job.input_file_2,
        'features': [feature.key for feature in job.features],
        'startTime': job.start_time.isoformat(),
        'finishTime': job.finish_time.isoformat(),
        'numberOfUnpairedInputs': job.number_of_unpaired_inputs,
    }
    readme_lines = get_result_summary_report_header() + get_general_info_block(
        job.finish_time, job.computing_time, job.number_of_pairs,
        job.input_file_1, job.input_file_2
    )

    try:
        output_path.mkdir(parents=True, exist_ok=True)
        job.to_frame(include_failures=True).to_csv(
            output_path / OUTPUT_FILE_NAME, index=False, compression="gzip"
        )
        with open(output_path / JOB_INFO_FILE_NAME, "w", encoding="utf-8") as f:
            json.dump(job_info, f, indent=4)
        with open(output_path / README_FILE_NAME, "w", encoding="utf-8") as f:
            f.write("\n".join(readme_lines) + "\n")
        _write_molecule_set(saved_results, output_path / MOLECULE_SET_1_FILE_NAME, 'molecule_1')
        _write_molecule_set(saved_results, output_path / MOLECULE_SET_2_FILE_NAME, 'molecule_2')
    except OSError as e:
        logger.error("Could not save job to %s: %s", output_path, e)
        raise PersistenceFailure(f"Could not save job to {output_path}: {e}") from e

    logger.info("Saved job output to %s", output_path)
    return output_path


def _row_to_result(row: pd.Series, features: Sequence[ComparisonFeature]) -> ComparisonResult:
    values_1 = empty_feature_array()
    values_2 = empty_feature_array()
    differences = empty_feature_array()
    for feature in features:
        differences[feature.identifier] = row[feature.key]
        values_1[feature.identifier] = row[f"{feature.key}_1"]
        values_2[feature.identifier] = row[f"{feature.key}_2"]
    reason = row['reason_of_failure'] or None
    return ComparisonResult(int(row['identifier']), row['molecule_1'], row['molecule_2'],
                            values_1, values_2, differences, reason)


def load_job(output_dir: Union[str, Path],
             preferences: Optional[UserPreferences] = None) -> JobResult:
    """
    Load a job saved with save_job.

    Args:
        output_dir: Job output directory
        preferences: Preferences for the loaded job (defaults if None)

    Returns:
        JobResult: The loaded job

    Raises:
        PersistenceFailure: If the directory does not contain a readable job
    """
    output_path = Path(output_dir)
    try:
        with open(output_path / JOB_INFO_FILE_NAME, "r", encoding="utf-8") as f:
            job_info = json.load(f)
        frame = pd.read_csv(
            output_path / OUTPUT_FILE_NAME, compression="gzip",
            dtype={'molecule_1': str, 'molecule_2': str, 'reason_of_failure': str},
        )
    except (OSError, ValueError) as e:
        raise PersistenceFailure(f"Cannot load job from {output_path}: {e}") from e

    try:
        features = [get_feature(key) for key in job_info['features']]
        frame[['molecule_1', 'molecule_2', 'reason_of_failure']] = (
            frame[['molecule_1', 'molecule_2', 'reason_of_failure']].fillna("")
        )
        all_results = [_row_to_result(row, features) for _, row in frame.iterrows()]
        start_time = datetime.fromisoformat(job_info['startTime'])
        finish_time = datetime.fromisoformat(job_info['finishTime'])
    except (KeyError, ValueError) as e:
        raise PersistenceFailure(f"Invalid job output in {output_path}: {e}") from e

    return JobResult(
        input_file_1=job_info.get('inputFile1', ""),
        input_file_2=job_info.get('inputFile2', ""),
        features=features,
        results=[r for r in all_results if not r.has_failed],
        failures=[r for r in all_results if r.has_failed],
        start_time=start_time,
        finish_time=finish_time,
        number_of_unpaired_inputs=int(job_info.get('numberOfUnpairedInputs', 0)),
        preferences=preferences if preferences is not None else UserPreferences(),
    )
