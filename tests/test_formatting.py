"""Tests for the plain-text report formatting."""

from datetime import datetime

import pytest

from molecule_set_comparator.features import BinLabelType, get_feature
from molecule_set_comparator.formatting import (format_compact, format_double,
                                                get_bin_labels, get_general_info_block,
                                                get_horizontal_histogram_block,
                                                get_result_summary_report_header,
                                                get_vertical_histogram_block)
from molecule_set_comparator.histogram import HistogramData, build_histogram

ATOM_COUNT = get_feature("ATOM_COUNT")
TANIMOTO = get_feature("TANIMOTO_MORGAN_FINGERPRINT")
MOLECULAR_WEIGHT = get_feature("MOLECULAR_WEIGHT")


@pytest.fixture
def discrete_histogram():
    return build_histogram(range(10), ATOM_COUNT, 2, bin_borders=[0, 5, 9])


@pytest.fixture
def continuous_histogram():
    return build_histogram([0.1, 0.2, 0.9], TANIMOTO, 2)


def test_vertical_block_discrete(discrete_histogram):
    assert get_vertical_histogram_block(discrete_histogram) == [
        "Atom count:",
        "",
        "bin borders | frequency of pairs",
        "--------------------------------",
        "         0  |",
        "            |  5",
        "         5  |",
        "            |  5",
        "        10  |",
        "",
        "min: 0.0",
        "max: 9.0",
        "average: 4.5",
        "",
    ]


def test_vertical_block_continuous_relative():
    histogram = build_histogram([0.1, 0.2, 0.9], TANIMOTO, 2, relative=True)

    lines = get_vertical_histogram_block(histogram)

    assert lines[4:9] == [
        "   0.00000  |",
        "            |  66.66667%",
        "   0.50000  |",
        "            |  33.33333%",
        "   1.00000  |",
    ]


def test_vertical_block_aligns_frequencies_on_decimal_point():
    histogram = HistogramData(TANIMOTO, [0.0, 0.5, 1.0], [5.0, 95.0], relative=True)

    lines = get_vertical_histogram_block(histogram)

    assert lines[5] == "            |   5.00000%"
    assert lines[7] == "            |  95.00000%"


def test_vertical_block_moves_pipe_for_wide_borders():
    histogram = build_histogram([0.0, 123456.0], MOLECULAR_WEIGHT, 1)

    lines = get_vertical_histogram_block(histogram)

    assert lines[2] == "bin borders   | frequency of pairs"
    assert lines[3] == "-" * len(lines[2])
    assert lines[4] == "     0.00000  |"
    assert lines[6] == "123456.00000  |"
    assert lines[5].index("|") == 14


def test_vertical_block_line_count(continuous_histogram):
    lines = get_vertical_histogram_block(continuous_histogram)

    assert len(lines) == 2 * len(continuous_histogram.bin_borders) + 8


def test_vertical_block_zero_pairs():
    absolute = get_vertical_histogram_block(build_histogram([], ATOM_COUNT, 2))
    relative = get_vertical_histogram_block(build_histogram([], ATOM_COUNT, 2, relative=True))

    assert absolute[5].endswith("|  0")
    assert relative[5].endswith("|  0.00000%")
    assert "min: NaN" in absolute
    assert "average: NaN" in relative


def test_horizontal_block_discrete(discrete_histogram):
    assert get_horizontal_histogram_block(discrete_histogram) == [
        "Atom count:",
        "",
        "0     5    10",
        " | 5.0 | 5.0 |",
        "",
    ]


def test_horizontal_block_continuous():
    histogram = build_histogram([0.1, 0.2, 0.9], TANIMOTO, 2)

    lines = get_horizontal_histogram_block(histogram)

    assert lines[2] == "0.0   0.5   1.0"
    assert lines[3] == " | 2.0 | 1.0 |"


def test_horizontal_block_pipes_line_up_with_decimal_points():
    histogram = build_histogram([0.5, 2.0, 2.5, 11.0, 11.0], MOLECULAR_WEIGHT, 4,
                                lower_border=0.0, upper_border=12.0, relative=True)

    _, _, border_line, frequency_line, _ = get_horizontal_histogram_block(histogram)

    points = [i for i, char in enumerate(border_line) if char == "."]
    pipes = [i for i, char in enumerate(frequency_line) if char == "|"]
    assert points == pipes


def test_horizontal_block_cells_have_equal_width():
    histogram = HistogramData(MOLECULAR_WEIGHT, [0.0, 1.0, 2.0, 3.0], [1.0, 12345.0, 3.0])

    frequency_line = get_horizontal_histogram_block(histogram)[3]
    cells = frequency_line.strip().strip("|").split("|")

    assert len({len(cell) for cell in cells}) == 1
    assert [cell.strip() for cell in cells] == ["1.0", "12345.0", "3.0"]


def test_horizontal_block_zero_pairs():
    lines = get_horizontal_histogram_block(build_histogram([], ATOM_COUNT, 3, relative=True))

    assert lines[3].count("0.0") == 3
    assert len(lines) == 5


def test_formatting_is_deterministic(continuous_histogram):
    assert get_vertical_histogram_block(continuous_histogram) == \
        get_vertical_histogram_block(continuous_histogram)
    assert get_horizontal_histogram_block(continuous_histogram) == \
        get_horizontal_histogram_block(continuous_histogram)


@pytest.mark.parametrize("value, expected", [
    (0.0, "0.0"),
    (4.0, "4.0"),
    (2.4000000000000004, "2.4"),
    (0.123456, "0.12346"),
    (-1.5, "-1.5"),
    (-0.000001, "0.0"),
])
def test_format_compact(value, expected):
    assert format_compact(value) == expected


def test_format_double():
    assert format_double(float("nan")) == "NaN"
    assert format_double(float("inf")) == "Infinity"
    assert format_double(0.1) == "0.1"
    assert format_double(3) == "3.0"


def test_report_header():
    header = get_result_summary_report_header()

    assert len(header) == 6
    assert header[0] == "Molecule Set Comparator"
    assert header[1] == "Version: 1.0"
    assert header[4] == "Result summary report"


def test_general_info_block():
    lines = get_general_info_block(datetime(2024, 3, 1, 12, 30, 0), 1.5, 8,
                                   "set1.smi", "set2.smi")

    assert len(lines) == 9
    assert lines[0] == "Date of completion: Fri Mar 01 12:30:00 2024"
    assert lines[1] == "Computing time: 1.5 (Seconds)"
    assert lines[3] == "Number of pairs: 8"
    assert lines[5:8] == ["Input set files:", "set1.smi", "set2.smi"]


def test_bin_labels_discrete(discrete_histogram):
    assert get_bin_labels(discrete_histogram, BinLabelType.MIN) == ["0", "5"]
    assert get_bin_labels(discrete_histogram, BinLabelType.MAX) == ["5", "9"]
    assert get_bin_labels(discrete_histogram, BinLabelType.MEAN) == ["2.5", "7.0"]
    assert get_bin_labels(discrete_histogram, BinLabelType.INTERVAL) == ["[0 - 5)", "[5 - 9]"]


def test_bin_labels_continuous(continuous_histogram):
    assert get_bin_labels(continuous_histogram, BinLabelType.MIN) == ["0.000", "0.500"]
    assert get_bin_labels(continuous_histogram, BinLabelType.MEAN) == ["0.250", "0.750"]
    assert get_bin_labels(continuous_histogram, BinLabelType.INTERVAL) == \
        ["[0.000 - 0.500)", "[0.500 - 1.000]"]


def test_bin_labels_are_made_unique():
    histogram = build_histogram([0.15], ATOM_COUNT, 2, bin_borders=[0.1, 0.2, 0.3])

    labels = get_bin_labels(histogram, BinLabelType.MIN)

    assert len(set(labels)) == 2
    assert labels == ["0.100", "0.200"]
    assert get_bin_labels(histogram, BinLabelType.MAX) == ["0.200", "0.300"]
