"""
Histogram aggregation of comparison values.

This module turns the raw per-pair values of one comparison feature into
an immutable HistogramData, using either equal-width automatic bins or
explicit user-defined bin borders.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .features import ComparisonFeature

logger = logging.getLogger(__name__)


class InvalidConfiguration(ValueError):
    """Raised for malformed bin counts or bin border arrays."""


def _read_only(values) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.flags.writeable = False
    return array


def assign_bins(bin_borders: np.ndarray, values: np.ndarray) -> np.ndarray:
    """
    Get the bin index of every value.

    A value v belongs to bin i if borders[i] <= v < borders[i+1]. The last
    bin is closed on both ends. Values outside the borders are clipped to
    the outermost bins.

    Args:
        bin_borders: Strictly increasing bin borders
        values: Finite values to assign

    Returns:
        np.ndarray: Bin index per value
    """
    number_of_bins = len(bin_borders) - 1
    indices = np.searchsorted(bin_borders, values, side='right') - 1
    return np.clip(indices, 0, number_of_bins - 1)


@dataclass(frozen=True, eq=False)
class HistogramData:
    """
    Histogram of one comparison feature over all pairs of a job.

    Attributes:
        feature: Comparison feature the histogram belongs to
        bin_borders: Ascending bin borders (number_of_bins + 1 values)
        frequencies: Absolute counts or percentages per bin
        relative: True if frequencies are percentages
        minimum: Minimum finite raw value (NaN if there is none)
        maximum: Maximum finite raw value (NaN if there is none)
        average: Average of the finite raw values (NaN if there is none)
        number_of_values: Number of raw values including invalid ones
        number_of_invalid_values: Number of NaN or infinite raw values
    """
    feature: ComparisonFeature
    bin_borders: np.ndarray
    frequencies: np.ndarray
    relative: bool = False
    minimum: float = math.nan
    maximum: float = math.nan
    average: float = math.nan
    number_of_values: int = 0
    number_of_invalid_values: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'bin_borders', _read_only(self.bin_borders))
        object.__setattr__(self, 'frequencies', _read_only(self.frequencies))
        if len(self.bin_borders) != len(self.frequencies) + 1:
            raise InvalidConfiguration(
                f"Expected {len(self.frequencies) + 1} bin borders, got {len(self.bin_borders)}"
            )
        if np.any(np.diff(self.bin_borders) <= 0):
            raise InvalidConfiguration(
                f"Bin borders must be strictly increasing: {self.bin_borders.tolist()}"
            )

    @property
    def number_of_bins(self) -> int:
        return len(self.frequencies)

    @property
    def number_of_valid_values(self) -> int:
        return self.number_of_values - self.number_of_invalid_values

    def bin_range(self, index: int) -> Tuple[float, float]:
        """Get the (lower, upper) borders of one bin."""
        if not 0 <= index < self.number_of_bins:
            raise IndexError(f"Bin index {index} out of range for {self.number_of_bins} bins")
        return float(self.bin_borders[index]), float(self.bin_borders[index + 1])

    def bin_index(self, value: float) -> Optional[int]:
        """
        Get the bin a raw value is counted in.

        Returns:
            Optional[int]: Bin index, or None for NaN or infinite values
        """
        if not math.isfinite(value):
            return None
        return int(assign_bins(self.bin_borders, np.array([value]))[0])

    def to_frame(self) -> pd.DataFrame:
        """Get the histogram as a DataFrame with one row per bin."""
        return pd.DataFrame({
            'lower': self.bin_borders[:-1],
            'upper': self.bin_borders[1:],
            'frequency': self.frequencies,
        })


def _validate_bin_borders(bin_borders: Sequence[float], number_of_bins: int) -> np.ndarray:
    borders = np.asarray(bin_borders, dtype=float)
    if borders.ndim != 1 or len(borders) != number_of_bins + 1:
        raise InvalidConfiguration(
            f"Expected {number_of_bins + 1} bin borders for {number_of_bins} bins, "
            f"got {borders.size}"
        )
    if not np.all(np.isfinite(borders)):
        raise InvalidConfiguration("Bin borders must be finite numbers")
    if np.any(np.diff(borders) <= 0):
        raise InvalidConfiguration(f"Bin borders must be strictly increasing: {borders.tolist()}")
    return borders


def _automatic_bin_borders(feature: ComparisonFeature, finite_values: np.ndarray,
                           number_of_bins: int, lower_border: Optional[float],
                           upper_border: Optional[float]) -> np.ndarray:
    if feature.has_bounds:
        lower, upper = feature.minimum, feature.maximum
    elif finite_values.size > 0:
        lower, upper = float(finite_values.min()), float(finite_values.max())
    else:
        lower, upper = 0.0, 1.0

    if lower_border is not None:
        lower = float(lower_border)
    if upper_border is not None:
        upper = float(upper_border)
    if not (math.isfinite(lower) and math.isfinite(upper)):
        raise InvalidConfiguration(f"Bin range must be finite, got [{lower}, {upper}]")

    if lower > upper:
        lower, upper = upper, lower
    if lower == upper:
        # All values identical: at least one unit wide, wider where floats are coarse
        upper = lower + max(1.0, 2.0 * number_of_bins * float(np.spacing(abs(lower))))

    borders = np.linspace(lower, upper, number_of_bins + 1)
    borders[-1] = upper
    return borders


def build_histogram(values: Sequence[float], feature: ComparisonFeature, number_of_bins: int,
                    bin_borders: Optional[Sequence[float]] = None, relative: bool = False,
                    lower_border: Optional[float] = None,
                    upper_border: Optional[float] = None) -> HistogramData:
    """
    Build the histogram of one feature's raw comparison values.

    Without explicit borders, equal-width bins span the feature's
    theoretical bounds when both are finite, otherwise the observed
    value range. lower_border/upper_border override either end.

    Args:
        values: Raw per-pair values (NaN marks a value that was not computed)
        feature: Comparison feature the values belong to
        number_of_bins: Number of bins (>= 1)
        bin_borders: Explicit ascending borders (number_of_bins + 1 values)
        relative: Report frequencies as percentages of the finite values
        lower_border: Lower end of the automatic bin range
        upper_border: Upper end of the automatic bin range

    Returns:
        HistogramData: The computed histogram

    Raises:
        InvalidConfiguration: If the bin count or the bin borders are invalid
    """
    if isinstance(number_of_bins, bool) or not isinstance(number_of_bins, (int, np.integer)):
        raise InvalidConfiguration(f"Number of bins must be an integer, got {number_of_bins!r}")
    if number_of_bins < 1:
        raise InvalidConfiguration(f"Number of bins must be at least 1, got {number_of_bins}")

    raw_values = np.asarray(values, dtype=float).ravel()
    finite_values = raw_values[np.isfinite(raw_values)]

    if bin_borders is not None:
        borders = _validate_bin_borders(bin_borders, number_of_bins)
    else:
        borders = _automatic_bin_borders(feature, finite_values, number_of_bins,
                                         lower_border, upper_border)

    counts = np.bincount(assign_bins(borders, finite_values), minlength=number_of_bins)
    frequencies = counts.astype(float)
    if relative:
        if finite_values.size > 0:
            frequencies = frequencies / finite_values.size * 100.0
        else:
            frequencies = np.zeros(number_of_bins)

    if finite_values.size > 0:
        minimum = float(finite_values.min())
        maximum = float(finite_values.max())
        average = float(finite_values.mean())
    else:
        minimum = maximum = average = math.nan

    number_of_invalid_values = int(raw_values.size - finite_values.size)
    if number_of_invalid_values:
        logger.debug("%s: skipped %d invalid values", feature.name, number_of_invalid_values)

    return HistogramData(
        feature=feature,
        bin_borders=borders,
        frequencies=frequencies,
        relative=relative,
        minimum=minimum,
        maximum=maximum,
        average=average,
        number_of_values=int(raw_values.size),
        number_of_invalid_values=number_of_invalid_values,
    )
