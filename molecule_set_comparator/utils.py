"""
Molecular descriptor utilities for molecule set comparison.

This module maps every comparison feature to an RDKit calculation. Property
features are computed per molecule and compared by absolute difference,
fingerprint features are compared by Tanimoto similarity.
"""

import math
from typing import Callable, Dict, Tuple

from rdkit import Chem, DataStructs
from rdkit.Chem import Crippen, Descriptors, Lipinski, MACCSkeys, rdFingerprintGenerator, rdMolDescriptors

from .features import ComparisonFeature

# Fingerprint generators are built once per process
_RDKIT_GENERATOR = rdFingerprintGenerator.GetRDKitFPGenerator(fpSize=2048)
_MORGAN_GENERATOR = rdFingerprintGenerator.GetMorganGenerator(radius=2, fpSize=1024)
_FEATURE_MORGAN_GENERATOR = rdFingerprintGenerator.GetMorganGenerator(
    radius=2, fpSize=1024,
    atomInvariantsGenerator=rdFingerprintGenerator.GetMorganFeatureAtomInvGen()
)
_ATOM_PAIR_GENERATOR = rdFingerprintGenerator.GetAtomPairGenerator(fpSize=2048)
_TORSION_GENERATOR = rdFingerprintGenerator.GetTopologicalTorsionGenerator(fpSize=2048)


def count_atoms_of_element(mol: Chem.Mol, atomic_number: int) -> int:
    """Count the atoms of one element, ignoring implicit hydrogens."""
    return sum(1 for atom in mol.GetAtoms() if atom.GetAtomicNum() == atomic_number)


def count_bonds(mol: Chem.Mol, bond_type=None) -> int:
    """
    Count bonds including bonds to hydrogens.

    Args:
        mol: RDKit molecule
        bond_type: Chem.BondType to count, or None for all bonds

    Returns:
        int: Number of matching bonds
    """
    mol_h = Chem.AddHs(mol)
    if bond_type is None:
        return mol_h.GetNumBonds()
    return sum(1 for bond in mol_h.GetBonds() if bond.GetBondType() == bond_type)


def count_rings_of_size(mol: Chem.Mol, size: int) -> int:
    return sum(1 for ring in mol.GetRingInfo().AtomRings() if len(ring) == size)


def _ring_counter(size: int) -> Callable[[Chem.Mol], int]:
    return lambda mol: count_rings_of_size(mol, size)


# Per-molecule descriptors, keyed by feature key
MOLECULAR_PROPERTIES: Dict[str, Callable[[Chem.Mol], float]] = {
    'ATOM_COUNT': lambda mol: mol.GetNumAtoms(onlyExplicit=False),
    'HEAVY_ATOM_COUNT': rdMolDescriptors.CalcNumHeavyAtoms,
    'CARBON_COUNT': lambda mol: count_atoms_of_element(mol, 6),
    'OXYGEN_COUNT': lambda mol: count_atoms_of_element(mol, 8),
    'SULFUR_COUNT': lambda mol: count_atoms_of_element(mol, 16),
    'NITROGEN_COUNT': lambda mol: count_atoms_of_element(mol, 7),
    'PHOSPHORUS_COUNT': lambda mol: count_atoms_of_element(mol, 15),
    'AROMATIC_ATOM_COUNT': lambda mol: sum(1 for atom in mol.GetAtoms() if atom.GetIsAromatic()),
    'BOND_COUNT': count_bonds,
    'SINGLE_BOND_COUNT': lambda mol: count_bonds(mol, Chem.BondType.SINGLE),
    'DOUBLE_BOND_COUNT': lambda mol: count_bonds(mol, Chem.BondType.DOUBLE),
    'TRIPLE_BOND_COUNT': lambda mol: count_bonds(mol, Chem.BondType.TRIPLE),
    'AROMATIC_BOND_COUNT': lambda mol: count_bonds(mol, Chem.BondType.AROMATIC),
    'ALL_RINGS_COUNT': rdMolDescriptors.CalcNumRings,
    'AROMATIC_RINGS_COUNT': rdMolDescriptors.CalcNumAromaticRings,
    'SIZE_3_RINGS_COUNT': _ring_counter(3),
    'SIZE_4_RINGS_COUNT': _ring_counter(4),
    'SIZE_5_RINGS_COUNT': _ring_counter(5),
    'SIZE_6_RINGS_COUNT': _ring_counter(6),
    'SIZE_7_RINGS_COUNT': _ring_counter(7),
    'SIZE_8_RINGS_COUNT': _ring_counter(8),
    'SIZE_9_RINGS_COUNT': _ring_counter(9),
    'H_BOND_ACCEPTOR_COUNT': Lipinski.NumHAcceptors,
    'H_BOND_DONOR_COUNT': Lipinski.NumHDonors,
    'ROTATABLE_BOND_COUNT': Lipinski.NumRotatableBonds,
    'SPIRO_ATOM_COUNT': rdMolDescriptors.CalcNumSpiroAtoms,
    'MOLECULAR_WEIGHT': Descriptors.MolWt,
    'CRIPPEN_LOGP': Crippen.MolLogP,
    'MOLAR_REFRACTIVITY': Crippen.MolMR,
    'TPSA': rdMolDescriptors.CalcTPSA,
    'FCSP3': rdMolDescriptors.CalcFractionCSP3,
    'KAPPA_SHAPE_INDEX_1': rdMolDescriptors.CalcKappa1,
    'KAPPA_SHAPE_INDEX_2': rdMolDescriptors.CalcKappa2,
    'KAPPA_SHAPE_INDEX_3': rdMolDescriptors.CalcKappa3,
    'BERTZ_COMPLEXITY': Descriptors.BertzCT,
    'BALABAN_J': Descriptors.BalabanJ,
}

# Fingerprint functions for Tanimoto similarity features
FINGERPRINTS: Dict[str, Callable] = {
    'TANIMOTO_RDKIT_FINGERPRINT': _RDKIT_GENERATOR.GetFingerprint,
    'TANIMOTO_MORGAN_FINGERPRINT': _MORGAN_GENERATOR.GetFingerprint,
    'TANIMOTO_FEATURE_MORGAN_FINGERPRINT': _FEATURE_MORGAN_GENERATOR.GetFingerprint,
    'TANIMOTO_MACCS_FINGERPRINT': MACCSkeys.GenMACCSKeys,
    'TANIMOTO_ATOM_PAIR_FINGERPRINT': _ATOM_PAIR_GENERATOR.GetFingerprint,
    'TANIMOTO_TORSION_FINGERPRINT': _TORSION_GENERATOR.GetFingerprint,
    'TANIMOTO_PATTERN_FINGERPRINT': Chem.PatternFingerprint,
}


def canonical_smiles(mol: Chem.Mol) -> str:
    """Get the canonical isomeric SMILES of a molecule."""
    return Chem.MolToSmiles(mol)


def tanimoto_similarity(mol1: Chem.Mol, mol2: Chem.Mol, fingerprint: Callable) -> float:
    """
    Calculate the Tanimoto similarity of two molecules.

    Args:
        mol1: First molecule
        mol2: Second molecule
        fingerprint: Function turning a molecule into a bit vector

    Returns:
        float: Tanimoto coefficient in [0, 1]
    """
    return DataStructs.TanimotoSimilarity(fingerprint(mol1), fingerprint(mol2))


def calculate_feature(feature: ComparisonFeature, mol1: Chem.Mol,
                      mol2: Chem.Mol) -> Tuple[float, float, float]:
    """
    Calculate one comparison feature for a molecule pair.

    Property features yield both molecule values and their absolute
    difference. Similarity and equality features have no per-molecule
    value, so the first two entries are NaN.

    Args:
        feature: Feature to calculate
        mol1: First molecule
        mol2: Second molecule

    Returns:
        Tuple[float, float, float]: (value of mol1, value of mol2, difference)

    Raises:
        KeyError: If no calculation is registered for the feature
    """
    if feature.key in MOLECULAR_PROPERTIES:
        func = MOLECULAR_PROPERTIES[feature.key]
        value1 = float(func(mol1))
        value2 = float(func(mol2))
        return value1, value2, abs(value1 - value2)

    if feature.key in FINGERPRINTS:
        similarity = tanimoto_similarity(mol1, mol2, FINGERPRINTS[feature.key])
        return math.nan, math.nan, float(similarity)

    if feature.key == 'EQUALITY':
        equal = canonical_smiles(mol1) == canonical_smiles(mol2)
        return math.nan, math.nan, 1.0 if equal else 0.0

    raise KeyError(f"No calculation registered for feature {feature.key}")
