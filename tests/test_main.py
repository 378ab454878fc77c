"""Tests for the command-line interface."""

import json

import pytest

from molecule_set_comparator.main import main


def test_list_features(capsys):
    main(["--list-features"])

    output = capsys.readouterr().out
    assert "ATOM_COUNT" in output
    assert "TANIMOTO_MORGAN_FINGERPRINT" in output


def test_run_comparison(atom_count_sets, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    output_dir = tmp_path / "results"

    main([str(atom_count_sets[0]), str(atom_count_sets[1]), "--features", "ATOM_COUNT",
          "EQUALITY", "--bins", "5", "--output-dir", str(output_dir), "--no-report"])

    report = (output_dir / "summaryReport.txt").read_text(encoding="utf-8")
    assert "Number of pairs: 8" in report
    assert "Atom count:" in report
    assert (output_dir / "jobOutput.csv.gz").exists()
    assert not (output_dir / "histogram_report.pdf").exists()
    assert not (tmp_path / "MSC_Files").exists()


def test_run_with_charts_and_saved_preferences(atom_count_sets, tmp_path):
    output_dir = tmp_path / "results"
    preferences = tmp_path / "prefs.json"

    main([str(atom_count_sets[0]), str(atom_count_sets[1]), "--features", "ATOM_COUNT",
          "--output-dir", str(output_dir), "--preferences", str(preferences),
          "--save-preferences", "--max-pairs", "2", "--images", "png", "--layout", "horizontal"])

    assert json.loads(preferences.read_text())["maximalNumberOfMoleculePairsToSave"] == 2
    assert (output_dir / "images" / "ATOM_COUNT.png").exists()
    assert (output_dir / "histogram_report.pdf").exists()
    assert len((output_dir / "moleculeSet1.txt").read_text().splitlines()) == 2


def test_missing_input_file_exits(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "a.smi"), str(tmp_path / "b.smi")])

    assert excinfo.value.code == 1


def test_unknown_feature_exits(atom_count_sets, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main([str(atom_count_sets[0]), str(atom_count_sets[1]), "--features", "BOGUS",
              "--output-dir", str(tmp_path / "results")])

    assert excinfo.value.code == 1


def test_invalid_bin_count_exits(atom_count_sets, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main([str(atom_count_sets[0]), str(atom_count_sets[1]), "--bins", "0",
              "--output-dir", str(tmp_path / "results")])

    assert excinfo.value.code == 1
