"""
Data models for molecule set comparison.

This module defines the per-pair comparison result produced by the
comparison workers and consumed by the job and histogram code.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional

from .features import FEATURES, ComparisonFeature


def empty_feature_array() -> np.ndarray:
    """Get a NaN-filled array with one slot per comparison feature."""
    return np.full(len(FEATURES), np.nan)


@dataclass
class ComparisonResult:
    """
    Result of comparing one molecule pair.

    Arrays are indexed by feature identifier. Features that were not
    calculated hold NaN.

    Attributes:
        identifier: Position of the pair in the input files
        molecule_1: Canonical SMILES of the first molecule (raw input on failure)
        molecule_2: Canonical SMILES of the second molecule (raw input on failure)
        values_1: Descriptor values of the first molecule
        values_2: Descriptor values of the second molecule
        differences: Comparison value per feature (difference or similarity)
        reason_of_failure: Error message if the comparison failed
    """
    identifier: int
    molecule_1: str = ""
    molecule_2: str = ""
    values_1: np.ndarray = field(default_factory=empty_feature_array)
    values_2: np.ndarray = field(default_factory=empty_feature_array)
    differences: np.ndarray = field(default_factory=empty_feature_array)
    reason_of_failure: Optional[str] = None

    def __post_init__(self):
        """Validate the result arrays after initialization."""
        for name in ('values_1', 'values_2', 'differences'):
            array = getattr(self, name)
            if not isinstance(array, np.ndarray) or array.shape != (len(FEATURES),):
                raise ValueError(f"{name} must be a numpy array of length {len(FEATURES)}")

    @classmethod
    def failed(cls, identifier: int, reason: str, molecule_1: str = "",
               molecule_2: str = "") -> "ComparisonResult":
        """Create a result for a comparison that could not be completed."""
        return cls(identifier, molecule_1, molecule_2, reason_of_failure=reason)

    @property
    def has_failed(self) -> bool:
        return self.reason_of_failure is not None

    @property
    def has_molecule_pair(self) -> bool:
        """True if both molecules of the pair are known."""
        return bool(self.molecule_1) and bool(self.molecule_2)

    def difference(self, feature: ComparisonFeature) -> float:
        """Get the comparison value of one feature."""
        return float(self.differences[feature.identifier])
