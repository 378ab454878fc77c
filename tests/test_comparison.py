"""Tests for reading, pairing and comparing molecules."""

import math

import pytest
from rdkit import Chem

from molecule_set_comparator.comparison import (ComparisonInputError, InputType,
                                                compare_molecule_pair, pair_molecule_sets,
                                                read_molecule_set)
from molecule_set_comparator.features import FEATURES, get_feature
from molecule_set_comparator.utils import FINGERPRINTS, MOLECULAR_PROPERTIES

ATOM_COUNT = get_feature("ATOM_COUNT")


def test_every_feature_has_a_calculation():
    registered = set(MOLECULAR_PROPERTIES) | set(FINGERPRINTS) | {"EQUALITY"}
    assert {feature.key for feature in FEATURES} == registered


def test_feature_identifiers_are_positions():
    assert [feature.identifier for feature in FEATURES] == list(range(len(FEATURES)))


def test_read_smiles_file(tmp_path):
    path = tmp_path / "set.smi"
    path.write_text("CCO ethanol\n\nc1ccccc1\tbenzene\n   \nCC\n", encoding="utf-8")

    assert read_molecule_set(path) == ["CCO", "", "c1ccccc1", "", "CC"]


def test_read_sdf_file(tmp_path):
    blocks = [Chem.MolToMolBlock(Chem.MolFromSmiles(smiles)) for smiles in ("CCO", "c1ccccc1")]
    path = tmp_path / "set.sdf"
    path.write_text("".join(block + "$$$$\n" for block in blocks), encoding="utf-8")

    entries = read_molecule_set(path)

    assert len(entries) == 2
    assert Chem.MolToSmiles(Chem.MolFromMolBlock(entries[1])) == "c1ccccc1"


def test_input_type_from_extension():
    assert InputType.from_path("molecules.SDF") is InputType.SDF
    assert InputType.from_path("molecules.smi") is InputType.SMILES
    assert InputType.from_path("molecules.txt") is InputType.SMILES


def test_read_missing_file(tmp_path):
    with pytest.raises(ComparisonInputError):
        read_molecule_set(tmp_path / "missing.smi")


def test_pairing_counts_unpaired_inputs():
    pairs, unpaired = pair_molecule_sets(["CC", "", "C", "O", ""], ["OO", "", "", "N"])

    assert pairs == [(0, "CC", "OO"), (1, "O", "N")]
    assert unpaired == 1


def test_pairing_counts_extra_entries_of_longer_set():
    pairs, unpaired = pair_molecule_sets(["CC", "C", "O"], ["CC"])

    assert len(pairs) == 1
    assert unpaired == 2


def test_compare_atom_count_includes_hydrogens():
    result = compare_molecule_pair(0, "CC", "OO", InputType.SMILES, InputType.SMILES, [ATOM_COUNT])

    assert not result.has_failed
    assert result.values_1[ATOM_COUNT.identifier] == 8
    assert result.values_2[ATOM_COUNT.identifier] == 4
    assert result.difference(ATOM_COUNT) == 4


def test_compare_only_selected_features():
    weight = get_feature("MOLECULAR_WEIGHT")
    result = compare_molecule_pair(0, "CC", "CCC", InputType.SMILES, InputType.SMILES, [weight])

    assert result.difference(weight) == pytest.approx(14.027, abs=1e-2)
    assert math.isnan(result.difference(ATOM_COUNT))


def test_tanimoto_and_equality_of_identical_molecules():
    features = [get_feature("TANIMOTO_MORGAN_FINGERPRINT"), get_feature("EQUALITY")]
    result = compare_molecule_pair(3, "OCC", "CCO", InputType.SMILES, InputType.SMILES, features)

    assert result.identifier == 3
    assert result.difference(features[0]) == pytest.approx(1.0)
    assert result.difference(features[1]) == 1.0
    assert math.isnan(result.values_1[features[0].identifier])
    assert result.molecule_1 == result.molecule_2 == "CCO"


def test_equality_of_different_molecules():
    equality = get_feature("EQUALITY")
    result = compare_molecule_pair(0, "CCO", "CCN", InputType.SMILES, InputType.SMILES, [equality])

    assert result.difference(equality) == 0.0


def test_all_features_compute_for_a_drug_like_pair():
    result = compare_molecule_pair(0, "CC(=O)Oc1ccccc1C(=O)O", "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
                                   InputType.SMILES, InputType.SMILES, FEATURES)

    assert not result.has_failed
    for feature in FEATURES:
        value = result.difference(feature)
        assert math.isfinite(value)
        if feature.has_bounds:
            assert feature.minimum <= value <= feature.maximum


def test_unparsable_molecule_gives_failed_result():
    result = compare_molecule_pair(5, "CC", "not_a_smiles", InputType.SMILES, InputType.SMILES,
                                   [ATOM_COUNT])

    assert result.has_failed
    assert result.identifier == 5
    assert "second" in result.reason_of_failure
    assert result.molecule_2 == "not_a_smiles"
    assert math.isnan(result.difference(ATOM_COUNT))
