"""
Reading, pairing and comparing molecules.

This module reads the two molecule set files, pairs their entries by
position and compares single molecule pairs with RDKit.
"""

import logging
from enum import Enum
from itertools import zip_longest
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from rdkit import Chem, RDLogger

from .features import ComparisonFeature
from .models import ComparisonResult
from .utils import calculate_feature, canonical_smiles

logger = logging.getLogger(__name__)

SDF_RECORD_SEPARATOR = "$$$$"
SDF_EXTENSIONS = {".sdf", ".sd", ".mol"}


class ComparisonInputError(ValueError):
    """Raised when a comparison job cannot be set up from its inputs."""


class InputType(Enum):
    """Molecule file format."""

    SMILES = "smiles"
    SDF = "sdf"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "InputType":
        """Detect the input type from a file extension."""
        if Path(path).suffix.lower() in SDF_EXTENSIONS:
            return cls.SDF
        return cls.SMILES


def _strip_line_break(record: str) -> str:
    for line_break in ("\r\n", "\n"):
        if record.startswith(line_break):
            return record[len(line_break):]
    return record


def read_molecule_set(path: Union[str, Path], input_type: Optional[InputType] = None) -> List[str]:
    """
    Read the entries of a molecule set file.

    SMILES files contribute one entry per line (the first whitespace
    separated token, names are dropped). Blank lines give empty entries so
    that positions match between the two files. SDF files are split into
    records on the $$$$ separator.

    Args:
        path: Path of the molecule set file
        input_type: File format (detected from the extension if None)

    Returns:
        List[str]: Molecule entries, possibly empty strings

    Raises:
        ComparisonInputError: If the file cannot be read
    """
    filepath = Path(path)
    if input_type is None:
        input_type = InputType.from_path(filepath)

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ComparisonInputError(f"Cannot read molecule set file {path}: {e}") from e

    if input_type is InputType.SDF:
        records = content.split(SDF_RECORD_SEPARATOR)
        # Text after the final separator is only trailing whitespace
        if records and not records[-1].strip():
            records.pop()
        # Drop the line break that ends each separator line; the first line
        # of a mol block is its title and may itself be empty
        records = records[:1] + [_strip_line_break(record) for record in records[1:]]
        return [record if record.strip() else "" for record in records]

    entries = []
    for line in content.splitlines():
        tokens = line.split()
        entries.append(tokens[0] if tokens else "")
    return entries


def pair_molecule_sets(entries_1: Sequence[str],
                       entries_2: Sequence[str]) -> Tuple[List[Tuple[int, str, str]], int]:
    """
    Pair the entries of two molecule sets by position.

    A pair is formed only when both entries are non-empty. Positions where
    exactly one entry is present are counted as unpaired inputs.

    Args:
        entries_1: Entries of the first set
        entries_2: Entries of the second set

    Returns:
        Tuple[List[Tuple[int, str, str]], int]: ((identifier, entry_1, entry_2) pairs,
            number of unpaired inputs)
    """
    pairs = []
    number_of_unpaired_inputs = 0
    for entry_1, entry_2 in zip_longest(entries_1, entries_2, fillvalue=""):
        has_1 = bool(entry_1.strip())
        has_2 = bool(entry_2.strip())
        if has_1 and has_2:
            pairs.append((len(pairs), entry_1, entry_2))
        elif has_1 or has_2:
            number_of_unpaired_inputs += 1
    return pairs, number_of_unpaired_inputs


def parse_molecule(entry: str, input_type: InputType) -> Optional[Chem.Mol]:
    """
    Parse a single molecule entry.

    Returns:
        Optional[Chem.Mol]: The molecule, or None if RDKit cannot parse it
    """
    if input_type is InputType.SDF:
        return Chem.MolFromMolBlock(entry)
    return Chem.MolFromSmiles(entry)


def compare_molecule_pair(identifier: int, input_1: str, input_2: str,
                          type_1: InputType, type_2: InputType,
                          features: Sequence[ComparisonFeature]) -> ComparisonResult:
    """
    Compare one molecule pair on all selected features.

    Failures do not raise: the returned result carries the reason instead.

    Args:
        identifier: Identifier of the pair
        input_1: First molecule entry
        input_2: Second molecule entry
        type_1: Format of the first entry
        type_2: Format of the second entry
        features: Features to calculate

    Returns:
        ComparisonResult: Comparison values or failure reason
    """
    # RDKit parse errors are reported through reason_of_failure instead
    RDLogger.DisableLog('rdApp.*')
    try:
        mol_1 = parse_molecule(input_1, type_1)
        mol_2 = parse_molecule(input_2, type_2)
    finally:
        RDLogger.EnableLog('rdApp.*')

    if mol_1 is None or mol_2 is None:
        if mol_1 is None and mol_2 is None:
            reason = "Both molecules could not be parsed"
        else:
            reason = f"The {'first' if mol_1 is None else 'second'} molecule could not be parsed"
        return ComparisonResult.failed(
            identifier, reason,
            canonical_smiles(mol_1) if mol_1 is not None else input_1.strip(),
            canonical_smiles(mol_2) if mol_2 is not None else input_2.strip(),
        )

    result = ComparisonResult(identifier, canonical_smiles(mol_1), canonical_smiles(mol_2))
    for feature in features:
        try:
            value_1, value_2, difference = calculate_feature(feature, mol_1, mol_2)
        except Exception as e:  # RDKit raises RuntimeError and Boost.Python errors
            logger.debug("Pair %d: %s failed: %s", identifier, feature.key, e)
            result.reason_of_failure = f"{feature.name} could not be calculated: {e}"
            return result
        result.values_1[feature.identifier] = value_1
        result.values_2[feature.identifier] = value_2
        result.differences[feature.identifier] = difference
    return result
