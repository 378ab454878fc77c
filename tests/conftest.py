"""Shared fixtures for the molecule set comparator tests."""

import pytest


def write_lines(path, lines):
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def atom_count_sets(tmp_path):
    """Two SMILES files whose atom count differences are 4, 0 and six times 3."""
    set_1 = write_lines(tmp_path / "set1.smi", ["CC mol_a", "CC mol_b"] + ["C"] * 6)
    set_2 = write_lines(tmp_path / "set2.smi", ["OO", "CC"] + ["CC"] * 6)
    return set_1, set_2
