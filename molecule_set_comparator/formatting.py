"""
Plain-text formatting of comparison results.

This module renders HistogramData objects and general job information as
fixed-width text lines for the result summary report, and creates the bin
labels used on histogram charts. All functions are pure.
"""

import math
from datetime import datetime
from typing import List

from .config import MSC_VERSION
from .features import BinLabelType
from .histogram import HistogramData

VERTICAL_HEADER_BORDERS = "bin borders "
VERTICAL_HEADER_FREQUENCIES = "| frequency of pairs"


def format_double(value: float) -> str:
    """Format a float as its shortest round-trip representation."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return repr(float(value))


def format_compact(value: float) -> str:
    """Format a float with at least one and at most five decimals."""
    text = f"{value:.5f}".rstrip("0")
    if text.endswith("."):
        text += "0"
    if text == "-0.0":
        text = "0.0"
    return text


def format_discrete_borders(bin_borders) -> List[str]:
    """
    Format bin borders of a discrete feature as integers.

    The upper border of the last bin is shown incremented by one.
    """
    last = len(bin_borders) - 1
    return [
        str(math.ceil(border + 1 if i == last else border))
        for i, border in enumerate(bin_borders)
    ]


def get_result_summary_report_header() -> List[str]:
    """Get the header lines of a result summary report."""
    return [
        "Molecule Set Comparator",
        f"Version: {MSC_VERSION}",
        "Covered under the GNU GPLv3",
        "",
        "Result summary report",
        "",
    ]


def get_general_info_block(date_of_completion: datetime, computing_time: float,
                           number_of_pairs: int, input_file_1: str,
                           input_file_2: str) -> List[str]:
    """
    Get the general job information lines of a result summary report.

    Args:
        date_of_completion: Time the job finished
        computing_time: Duration of the job in seconds
        number_of_pairs: Number of compared molecule pairs
        input_file_1: Path of the first molecule set file
        input_file_2: Path of the second molecule set file

    Returns:
        List[str]: Report lines
    """
    return [
        f"Date of completion: {date_of_completion.strftime('%a %b %d %H:%M:%S %Y')}",
        f"Computing time: {format_double(computing_time)} (Seconds)",
        "",
        f"Number of pairs: {number_of_pairs}",
        "",
        "Input set files:",
        str(input_file_1),
        str(input_file_2),
        "",
    ]


def get_vertical_histogram_block(histogram: HistogramData) -> List[str]:
    """
    Render a histogram with one bin border or frequency per line.

    Border lines and frequency lines alternate, separated by a pipe column.
    Frequencies are aligned on their decimal point.

    Args:
        histogram: Histogram to render

    Returns:
        List[str]: 2 * number of borders + 8 lines
    """
    if histogram.feature.is_continuous:
        borders = [f"{border:.5f}" for border in histogram.bin_borders]
    else:
        borders = format_discrete_borders(histogram.bin_borders)
    max_border_length = max(len(border) for border in borders)

    pipe_position = len(VERTICAL_HEADER_BORDERS)
    if pipe_position - 2 < max_border_length:
        pipe_position = max_border_length + 2
    header = (VERTICAL_HEADER_BORDERS + " " * (pipe_position - len(VERTICAL_HEADER_BORDERS))
              + VERTICAL_HEADER_FREQUENCIES)

    if histogram.relative:
        frequencies = [f"{frequency:.5f}" for frequency in histogram.frequencies]
    else:
        frequencies = [f"{frequency:.0f}" for frequency in histogram.frequencies]
    max_integer_length = max(len(frequency.split(".")[0]) for frequency in frequencies)
    suffix = "%" if histogram.relative else ""

    lines = [f"{histogram.feature.name}:", "", header, "-" * len(header)]
    for i, border in enumerate(borders):
        padding = max(pipe_position - len(border) - 2, 0)
        lines.append(" " * padding + border + "  |")
        if i < len(frequencies):
            frequency = frequencies[i]
            alignment = " " * (max_integer_length - len(frequency.split(".")[0]))
            lines.append(" " * pipe_position + "|  " + alignment + frequency + suffix)

    lines.extend([
        "",
        f"min: {format_double(histogram.minimum)}",
        f"max: {format_double(histogram.maximum)}",
        f"average: {format_double(histogram.average)}",
        "",
    ])
    return lines


def get_horizontal_histogram_block(histogram: HistogramData) -> List[str]:
    """
    Render a histogram with all borders on one line and all frequencies
    centered in pipe-delimited cells on the next.

    Every pipe sits under the decimal point (or, for discrete features, right
    after the integer) of the border to its left.

    Args:
        histogram: Histogram to render

    Returns:
        List[str]: 5 lines
    """
    continuous = histogram.feature.is_continuous
    if continuous:
        borders = [format_compact(border) for border in histogram.bin_borders]
    else:
        borders = format_discrete_borders(histogram.bin_borders)

    split_borders = [border.partition(".") for border in borders]
    max_pre_point_length = max(len(pre) for pre, _, _ in split_borders)
    max_post_point_length = max(len(post) for _, _, post in split_borders)
    point_length = 1 + max_post_point_length if continuous else 0

    frequencies = [format_double(frequency) for frequency in histogram.frequencies]
    frequency_length = max(len(frequency) for frequency in frequencies)

    # A border cell and a frequency cell ("| " + frequency + " ") must have equal width
    separator = "  "
    while max_pre_point_length + point_length + len(separator) < frequency_length + 3:
        separator += " "
    while max_pre_point_length + point_length + len(separator) > frequency_length + 3:
        frequency_length += 1

    border_line = ""
    for pre, point, post in split_borders:
        cell = pre.rjust(max_pre_point_length)
        if continuous:
            cell += point + post.ljust(max_post_point_length)
        border_line += cell + separator
    border_line = border_line.strip()

    frequency_line = " " * len(split_borders[0][0])
    for frequency in frequencies:
        missing = frequency_length - len(frequency)
        leading = missing // 2 + missing % 2
        cell = " " * leading + frequency + " " * (missing - leading)
        frequency_line += "| " + cell + " "
    frequency_line += "|"

    return [f"{histogram.feature.name}:", "", border_line, frequency_line, ""]


def _format_label_value(value: float, continuous: bool, precision: int) -> str:
    if continuous:
        return f"{value:.{precision}f}"
    return str(math.ceil(value))


def _bin_labels(histogram: HistogramData, label_type: BinLabelType,
                extra_precision: int) -> List[str]:
    continuous = histogram.feature.is_continuous
    borders = histogram.bin_borders
    border_precision = (3 if continuous else 2) + extra_precision
    labels = []
    for i in range(histogram.number_of_bins):
        lower, upper = float(borders[i]), float(borders[i + 1])
        if label_type is BinLabelType.MIN:
            labels.append(_format_label_value(lower, continuous or extra_precision > 0,
                                              border_precision))
        elif label_type is BinLabelType.MAX:
            labels.append(_format_label_value(upper, continuous or extra_precision > 0,
                                              border_precision))
        elif label_type is BinLabelType.MEAN:
            precision = (3 if continuous else 1) + extra_precision
            labels.append(f"{(lower + upper) / 2:.{precision}f}")
        else:
            closing = "]" if i == histogram.number_of_bins - 1 else ")"
            as_float = continuous or extra_precision > 0
            labels.append(
                f"[{_format_label_value(lower, as_float, border_precision)} - "
                f"{_format_label_value(upper, as_float, border_precision)}{closing}"
            )
    return labels


def get_bin_labels(histogram: HistogramData, label_type: BinLabelType) -> List[str]:
    """
    Create one chart label per bin.

    Continuous borders use three decimals, discrete borders are shown as
    integers. If labels collide the precision is raised until they are
    unique.

    Args:
        histogram: Histogram to label
        label_type: Label rendering mode

    Returns:
        List[str]: Bin labels
    """
    labels = _bin_labels(histogram, label_type, 0)
    extra_precision = 0
    while len(set(labels)) < len(labels) and extra_precision < 7:
        extra_precision += 1
        labels = _bin_labels(histogram, label_type, extra_precision)
    return labels
