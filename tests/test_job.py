"""Tests for comparison job execution and persistence."""

import gzip

import numpy as np
import pandas as pd
import pytest

from molecule_set_comparator.comparison import ComparisonInputError
from molecule_set_comparator.config import PersistenceFailure, UserPreferences
from molecule_set_comparator.features import get_feature
from molecule_set_comparator.job import (export_molecule_list, load_job, run_job, save_job,
                                         save_summary_report)


ATOM_COUNT = get_feature("ATOM_COUNT")
EQUALITY = get_feature("EQUALITY")


def write_lines(path, lines):
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_atom_count_histogram(atom_count_sets):
    job = run_job(*atom_count_sets, ["ATOM_COUNT"])

    histogram = job.histogram(ATOM_COUNT, 5)

    assert job.number_of_pairs == 8
    assert job.number_of_unpaired_inputs == 0
    np.testing.assert_allclose(histogram.bin_borders, [0.0, 0.8, 1.6, 2.4, 3.2, 4.0])
    assert histogram.frequencies.tolist() == [1.0, 0.0, 0.0, 6.0, 1.0]
    assert histogram.minimum == 0.0
    assert histogram.maximum == 4.0
    assert histogram.average == pytest.approx(22 / 8)


def test_parallel_job_matches_serial_job(atom_count_sets):
    serial = run_job(*atom_count_sets, [ATOM_COUNT, EQUALITY])
    parallel = run_job(*atom_count_sets, [ATOM_COUNT, EQUALITY],
                       UserPreferences(number_of_parallel_threads=2))

    assert [r.identifier for r in parallel.results] == list(range(8))
    np.testing.assert_array_equal(serial.values(ATOM_COUNT), parallel.values(ATOM_COUNT))
    np.testing.assert_array_equal(serial.values(EQUALITY), parallel.values(EQUALITY))


def test_histogram_defaults_to_preferred_bin_count(atom_count_sets):
    job = run_job(*atom_count_sets, [ATOM_COUNT], UserPreferences(default_number_of_bins=4))

    assert job.histogram(ATOM_COUNT).number_of_bins == 4
    assert job.histogram(ATOM_COUNT, bin_borders=[0, 2, 4]).number_of_bins == 2


def test_relative_histogram(atom_count_sets):
    job = run_job(*atom_count_sets, [ATOM_COUNT])

    histogram = job.histogram(ATOM_COUNT, 5, relative=True)

    assert histogram.frequencies.tolist() == [12.5, 0.0, 0.0, 75.0, 12.5]


def test_pairs_in_bin(atom_count_sets):
    job = run_job(*atom_count_sets, [ATOM_COUNT])
    histogram = job.histogram(ATOM_COUNT, 5)

    pairs = job.pairs_in_bin(histogram, 3)

    assert len(pairs) == 6
    assert all(pair.molecule_1 == "C" and pair.molecule_2 == "CC" for pair in pairs)
    assert [pair.identifier for pair in job.pairs_in_bin(histogram, 4)] == [0]
    with pytest.raises(IndexError):
        job.pairs_in_bin(histogram, 5)


def test_unpaired_and_failed_inputs(tmp_path):
    set_1 = write_lines(tmp_path / "a.smi", ["CC", "C1CC", "CO", "N"])
    set_2 = write_lines(tmp_path / "b.smi", ["CC", "CC", ""])

    job = run_job(set_1, set_2, [ATOM_COUNT])

    assert job.number_of_pairs == 1
    assert len(job.failures) == 1
    assert job.failures[0].reason_of_failure
    assert job.number_of_unpaired_inputs == 2


def test_no_features(atom_count_sets):
    with pytest.raises(ComparisonInputError):
        run_job(*atom_count_sets, [])


def test_unknown_feature(atom_count_sets):
    with pytest.raises(ComparisonInputError):
        run_job(*atom_count_sets, ["NOT_A_FEATURE"])


def test_missing_input_file(atom_count_sets, tmp_path):
    with pytest.raises(ComparisonInputError):
        run_job(atom_count_sets[0], tmp_path / "missing.smi", [ATOM_COUNT])


def test_no_pairs(tmp_path):
    set_1 = write_lines(tmp_path / "a.smi", ["", ""])
    set_2 = write_lines(tmp_path / "b.smi", ["CC"])

    with pytest.raises(ComparisonInputError):
        run_job(set_1, set_2, [ATOM_COUNT])


def test_all_comparisons_failed(tmp_path):
    set_1 = write_lines(tmp_path / "a.smi", ["C1CC", "C(("])
    set_2 = write_lines(tmp_path / "b.smi", ["CC", "CC"])

    with pytest.raises(ComparisonInputError):
        run_job(set_1, set_2, [ATOM_COUNT])


def test_to_frame(atom_count_sets):
    job = run_job(*atom_count_sets, [ATOM_COUNT])

    frame = job.to_frame()

    assert list(frame.columns) == ["identifier", "molecule_1", "molecule_2", "reason_of_failure",
                                   "ATOM_COUNT", "ATOM_COUNT_1", "ATOM_COUNT_2"]
    assert frame["ATOM_COUNT"].tolist() == [4.0, 0.0] + [3.0] * 6
    assert frame["ATOM_COUNT_1"].tolist()[:3] == [8.0, 8.0, 5.0]


def test_summary_report_lines(atom_count_sets):
    job = run_job(*atom_count_sets, [ATOM_COUNT, EQUALITY])

    lines = job.summary_report_lines(number_of_bins=5)

    assert lines[0] == "Molecule Set Comparator"
    assert "Number of pairs: 8" in lines
    assert "Atom count:" in lines
    assert "Equality:" in lines
    assert len(lines) == 6 + 9 + 2 * (2 * 6 + 8)


def test_summary_report_rejects_unknown_layout(atom_count_sets):
    job = run_job(*atom_count_sets, [ATOM_COUNT])

    with pytest.raises(ValueError):
        job.summary_report_lines(layout="diagonal")


def test_save_summary_report(atom_count_sets, tmp_path):
    job = run_job(*atom_count_sets, [ATOM_COUNT])

    path = save_summary_report(job, tmp_path / "reports" / "summary.txt", relative=True,
                               layout="horizontal")

    text = path.read_text(encoding="utf-8")
    assert text.startswith("Molecule Set Comparator\n")
    assert "Atom count:" in text


def test_save_and_load_job(atom_count_sets, tmp_path):
    job = run_job(*atom_count_sets, [ATOM_COUNT, EQUALITY],
                  UserPreferences(maximal_number_of_molecule_pairs_to_save=3))
    output_dir = tmp_path / "job"

    save_job(job, output_dir)
    loaded = load_job(output_dir)

    assert loaded.features == job.features
    assert loaded.input_file_1 == job.input_file_1
    assert loaded.number_of_pairs == job.number_of_pairs
    assert loaded.start_time == job.start_time
    assert loaded.finish_time == job.finish_time
    np.testing.assert_array_equal(loaded.values(ATOM_COUNT), job.values(ATOM_COUNT))
    assert [r.molecule_1 for r in loaded.results] == [r.molecule_1 for r in job.results]
    assert loaded.histogram(ATOM_COUNT, 5).frequencies.tolist() == [1.0, 0.0, 0.0, 6.0, 1.0]

    assert (output_dir / "moleculeSet1.txt").read_text().splitlines() == ["CC", "CC", "C"]
    assert (output_dir / "moleculeSet2.txt").read_text().splitlines() == ["OO", "CC", "CC"]
    assert (output_dir / "README.txt").read_text().startswith("Molecule Set Comparator")
    with gzip.open(output_dir / "jobOutput.csv.gz", "rt") as f:
        assert len(pd.read_csv(f)) == 8


def test_saved_job_keeps_failures(tmp_path):
    set_1 = write_lines(tmp_path / "a.smi", ["CC", "C1CC"])
    set_2 = write_lines(tmp_path / "b.smi", ["CC", "CC"])
    job = run_job(set_1, set_2, [ATOM_COUNT])

    save_job(job, tmp_path / "job")
    loaded = load_job(tmp_path / "job")

    assert len(loaded.results) == 1
    assert len(loaded.failures) == 1
    assert loaded.failures[0].reason_of_failure == job.failures[0].reason_of_failure


def test_load_missing_job(tmp_path):
    with pytest.raises(PersistenceFailure):
        load_job(tmp_path / "nothing")


def test_export_molecule_list(atom_count_sets, tmp_path):
    job = run_job(*atom_count_sets, [ATOM_COUNT])
    histogram = job.histogram(ATOM_COUNT, 5)

    count = export_molecule_list(job.pairs_in_bin(histogram, 3), tmp_path / "bin3.txt", limit=4)

    assert count == 4
    assert (tmp_path / "bin3.txt").read_text().splitlines() == ["C CC"] * 4
