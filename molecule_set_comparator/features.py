"""
Comparison features for molecule set comparison.

This module defines the fixed table of comparison features (chemistry
descriptors whose per-pair difference is histogrammed) and the label
modes used when drawing histogram charts.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple, Union

NAN = float("nan")


@dataclass(frozen=True, eq=False)
class ComparisonFeature:
    """
    A single comparison feature.

    Attributes:
        identifier: Stable integer identifier (position in FEATURES)
        key: Constant name of the feature, e.g. ATOM_COUNT
        name: Display name
        is_continuous: True if the feature takes continuous values
        minimum: Theoretical minimum value or NaN if unbounded
        maximum: Theoretical maximum value or NaN if unbounded
        description: Detailed description
    """
    identifier: int
    key: str
    name: str
    is_continuous: bool
    minimum: float
    maximum: float
    description: str

    @property
    def has_bounds(self) -> bool:
        """True if both theoretical bounds are defined and finite."""
        return math.isfinite(self.minimum) and math.isfinite(self.maximum)

    def __str__(self) -> str:
        return self.name

    # NaN bounds break field-wise equality, compare by identifier
    def __eq__(self, other) -> bool:
        if not isinstance(other, ComparisonFeature):
            return NotImplemented
        return self.identifier == other.identifier

    def __hash__(self) -> int:
        return hash(self.identifier)

    def __reduce__(self):
        return get_feature, (self.identifier,)


class BinLabelType(Enum):
    """Label rendering mode for histogram chart axes."""

    MIN = "Lower bin border"
    MAX = "Upper bin border"
    MEAN = "Mean of both borders"
    INTERVAL = "Interval"

    @property
    def description(self) -> str:
        return self.value


# (key, display name, is_continuous, minimum, maximum, description)
# Order is important: the position is the feature identifier used to index
# result arrays and persisted job output
_FEATURE_DEFINITIONS: List[Tuple[str, str, bool, float, float, str]] = [
    ('TANIMOTO_RDKIT_FINGERPRINT', 'RDKit fingerprint', True, 0.0, 1.0,
     'The Tanimoto coefficient with the RDKit topological fingerprint'),
    ('TANIMOTO_MORGAN_FINGERPRINT', 'Morgan fingerprint', True, 0.0, 1.0,
     'The Tanimoto coefficient with the Morgan (ECFP4-like) fingerprint'),
    ('TANIMOTO_FEATURE_MORGAN_FINGERPRINT', 'Feature Morgan fingerprint', True, 0.0, 1.0,
     'The Tanimoto coefficient with the feature based Morgan (FCFP4-like) fingerprint'),
    ('TANIMOTO_MACCS_FINGERPRINT', 'MACCS fingerprint', True, 0.0, 1.0,
     'The Tanimoto coefficient with the MACCS keys'),
    ('TANIMOTO_ATOM_PAIR_FINGERPRINT', 'Atom pair fingerprint', True, 0.0, 1.0,
     'The Tanimoto coefficient with the atom pair fingerprint'),
    ('TANIMOTO_TORSION_FINGERPRINT', 'Topological torsion fingerprint', True, 0.0, 1.0,
     'The Tanimoto coefficient with the topological torsion fingerprint'),
    ('TANIMOTO_PATTERN_FINGERPRINT', 'Substructure fingerprint', True, 0.0, 1.0,
     'The Tanimoto coefficient with the substructure pattern fingerprint'),
    ('ATOM_COUNT', 'Atom count', False, 0.0, NAN,
     'The difference of the counts of all atoms (including hydrogens)'),
    ('HEAVY_ATOM_COUNT', 'Heavy atom count', False, 0.0, NAN,
     'The difference of the counts of all non-hydrogen atoms'),
    ('CARBON_COUNT', 'C count', False, 0.0, NAN,
     'The difference of the counts of all carbon atoms'),
    ('OXYGEN_COUNT', 'O count', False, 0.0, NAN,
     'The difference of the counts of all oxygen atoms'),
    ('SULFUR_COUNT', 'S count', False, 0.0, NAN,
     'The difference of the counts of all sulfur atoms'),
    ('NITROGEN_COUNT', 'N count', False, 0.0, NAN,
     'The difference of the counts of all nitrogen atoms'),
    ('PHOSPHORUS_COUNT', 'P count', False, 0.0, NAN,
     'The difference of the counts of all phosphorus atoms'),
    ('AROMATIC_ATOM_COUNT', 'Aromatic atom count', False, 0.0, NAN,
     'The difference of the counts of all aromatic atoms'),
    ('BOND_COUNT', 'Bond count', False, 0.0, NAN,
     'The difference of the counts of all bonds (including bonds to hydrogens)'),
    ('SINGLE_BOND_COUNT', 'Single bond count', False, 0.0, NAN,
     'The difference of the counts of all single bonds'),
    ('DOUBLE_BOND_COUNT', 'Double bond count', False, 0.0, NAN,
     'The difference of the counts of all double bonds'),
    ('TRIPLE_BOND_COUNT', 'Triple bond count', False, 0.0, NAN,
     'The difference of the counts of all triple bonds'),
    ('AROMATIC_BOND_COUNT', 'Aromatic bond count', False, 0.0, NAN,
     'The difference of the counts of all aromatic bonds'),
    ('ALL_RINGS_COUNT', 'All rings count', False, 0.0, NAN,
     'The difference of the counts of all rings of the smallest set of smallest rings'),
    ('AROMATIC_RINGS_COUNT', 'Aromatic rings count', False, 0.0, NAN,
     'The difference of the counts of all aromatic rings'),
    ('SIZE_3_RINGS_COUNT', 'Size 3 rings count', False, 0.0, NAN,
     'The difference of the counts of all rings with size 3'),
    ('SIZE_4_RINGS_COUNT', 'Size 4 rings count', False, 0.0, NAN,
     'The difference of the counts of all rings with size 4'),
    ('SIZE_5_RINGS_COUNT', 'Size 5 rings count', False, 0.0, NAN,
     'The difference of the counts of all rings with size 5'),
    ('SIZE_6_RINGS_COUNT', 'Size 6 rings count', False, 0.0, NAN,
     'The difference of the counts of all rings with size 6'),
    ('SIZE_7_RINGS_COUNT', 'Size 7 rings count', False, 0.0, NAN,
     'The difference of the counts of all rings with size 7'),
    ('SIZE_8_RINGS_COUNT', 'Size 8 rings count', False, 0.0, NAN,
     'The difference of the counts of all rings with size 8'),
    ('SIZE_9_RINGS_COUNT', 'Size 9 rings count', False, 0.0, NAN,
     'The difference of the counts of all rings with size 9'),
    ('H_BOND_ACCEPTOR_COUNT', 'H-bond acceptor count', False, 0.0, NAN,
     'The difference of the counts of H-bond acceptors'),
    ('H_BOND_DONOR_COUNT', 'H-bond donor count', False, 0.0, NAN,
     'The difference of the counts of H-bond donors'),
    ('ROTATABLE_BOND_COUNT', 'Rotatable bond count', False, 0.0, NAN,
     'The difference of the counts of rotatable bonds'),
    ('SPIRO_ATOM_COUNT', 'Spiro atom count', False, 0.0, NAN,
     'The difference of the counts of spiro atoms'),
    ('MOLECULAR_WEIGHT', 'Molecular weight', True, 0.0, NAN,
     'The difference of molecular weights'),
    ('CRIPPEN_LOGP', 'Crippen LogP', True, NAN, NAN,
     'The difference of the Wildman-Crippen LogP values'),
    ('MOLAR_REFRACTIVITY', 'Molar refractivity', True, NAN, NAN,
     'The difference of the Wildman-Crippen molar refractivities'),
    ('TPSA', 'Topological PSA', True, 0.0, NAN,
     'The difference of the topological polar surface areas'),
    ('FCSP3', 'Fraction of SP3 carbons', True, 0.0, 1.0,
     'The difference of the fractions of sp3 hybridized carbons to the total number of carbons'),
    ('KAPPA_SHAPE_INDEX_1', '1. kappa shape index', True, NAN, NAN,
     'The difference of the first kappa shape indices'),
    ('KAPPA_SHAPE_INDEX_2', '2. kappa shape index', True, NAN, NAN,
     'The difference of the second kappa shape indices'),
    ('KAPPA_SHAPE_INDEX_3', '3. kappa shape index', True, NAN, NAN,
     'The difference of the third kappa shape indices'),
    ('BERTZ_COMPLEXITY', 'Bertz complexity', True, NAN, NAN,
     'The difference of the Bertz molecular complexity indices'),
    ('BALABAN_J', 'Balaban J', True, NAN, NAN,
     'The difference of the Balaban J topological indices'),
    ('EQUALITY', 'Equality', False, 0.0, 1.0,
     'Returns 1 if the canonical SMILES are the same, else returns 0'),
]

FEATURES: Tuple[ComparisonFeature, ...] = tuple(
    ComparisonFeature(index, key, name, is_continuous, minimum, maximum, description)
    for index, (key, name, is_continuous, minimum, maximum, description)
    in enumerate(_FEATURE_DEFINITIONS)
)

_FEATURES_BY_KEY: Dict[str, ComparisonFeature] = {f.key: f for f in FEATURES}
_FEATURES_BY_NAME: Dict[str, ComparisonFeature] = {f.name: f for f in FEATURES}


def get_feature(identifier: Union[int, str, ComparisonFeature]) -> ComparisonFeature:
    """
    Look up a feature by its integer identifier or its key.

    Args:
        identifier: Feature identifier (int), key (str, case-insensitive)
            or a ComparisonFeature, which is returned unchanged

    Returns:
        ComparisonFeature: The matching feature

    Raises:
        KeyError: If no feature matches
    """
    if isinstance(identifier, ComparisonFeature):
        return identifier
    if isinstance(identifier, int):
        if 0 <= identifier < len(FEATURES):
            return FEATURES[identifier]
        raise KeyError(f"Unknown comparison feature identifier: {identifier}")
    try:
        return _FEATURES_BY_KEY[identifier.upper()]
    except KeyError:
        raise KeyError(f"Unknown comparison feature: {identifier}") from None


def get_feature_by_name(name: str) -> ComparisonFeature:
    """Look up a feature by its display name."""
    try:
        return _FEATURES_BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown comparison feature name: {name}") from None


def get_feature_names() -> List[str]:
    """Get the display names of all features in identifier order."""
    return [feature.name for feature in FEATURES]


def get_feature_keys() -> List[str]:
    return [feature.key for feature in FEATURES]
