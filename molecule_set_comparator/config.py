"""
Configuration management for molecule set comparison.

This module holds the application constants and the user preferences:
default directories, parallelism, default bin count, the number of
molecule pairs to save and the image export quality. Preferences are
persisted as JSON and fall back to hard-coded defaults when the file is
missing or unreadable.
"""

import json
import logging
import math
import os
import tempfile
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

MSC_VERSION = "1.0"
MSC_FILES_DIRECTORY = "MSC_Files"
PREFERENCES_FILE_NAME = "UserPreferences.json"
OUTPUT_FILE_NAME = "jobOutput.csv.gz"
JOB_INFO_FILE_NAME = "jobInfo.json"
MOLECULE_SET_1_FILE_NAME = "moleculeSet1.txt"
MOLECULE_SET_2_FILE_NAME = "moleculeSet2.txt"
README_FILE_NAME = "README.txt"

# Single writer for the preferences file
_SAVE_LOCK = threading.Lock()

_KEY_MAPPING = {
    'input_dir': 'inputDir',
    'output_dir': 'outputDir',
    'image_dir': 'imageDir',
    'molecule_list_dir': 'moleculeListDir',
    'summary_report_dir': 'summaryReportDir',
    'number_of_parallel_threads': 'numberOfParallelThreads',
    'default_number_of_bins': 'defaultNumberOfBins',
    'maximal_number_of_molecule_pairs_to_save': 'maximalNumberOfMoleculePairsToSave',
    'image_quality': 'imageQuality',
}
_REVERSE_MAPPING = {v: k for k, v in _KEY_MAPPING.items()}


class PersistenceFailure(OSError):
    """Raised when preferences cannot be read or written."""


def image_scaling_factor(image_quality: float) -> float:
    """Get the image scaling factor (1.0 at quality 0, 0.09 at quality 1)."""
    return -0.91 * min(max(image_quality, 0.0), 1.0) + 1.0


def get_msc_files_directory() -> Path:
    """Get the application file directory in the current working directory."""
    return Path.cwd() / MSC_FILES_DIRECTORY


def get_default_preferences_path() -> Path:
    return get_msc_files_directory() / PREFERENCES_FILE_NAME


@dataclass
class UserPreferences:
    """
    User preferences for molecule set comparison.

    image_quality is clamped to [0.0, 1.0] whenever it is assigned.
    """

    # Default directories for file dialogs and exports ("" = not set)
    input_dir: str = ""
    output_dir: str = ""
    image_dir: str = ""
    molecule_list_dir: str = ""
    summary_report_dir: str = ""

    number_of_parallel_threads: int = 1
    default_number_of_bins: int = 10
    maximal_number_of_molecule_pairs_to_save: int = 1000
    image_quality: float = 0.5

    def __setattr__(self, name: str, value: Any) -> None:
        if name == 'image_quality':
            value = float(value)
            if math.isnan(value):
                raise ValueError("image_quality must be a number between 0.0 and 1.0")
            value = min(max(value, 0.0), 1.0)
        super().__setattr__(name, value)

    def __post_init__(self):
        """Validate parameters after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate that all parameters are within acceptable ranges."""
        for name in ("number_of_parallel_threads", "default_number_of_bins",
                     "maximal_number_of_molecule_pairs_to_save"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")

        if self.number_of_parallel_threads < 1:
            raise ValueError(
                f"number_of_parallel_threads must be positive, got {self.number_of_parallel_threads}"
            )

        if self.default_number_of_bins < 1:
            raise ValueError(
                f"default_number_of_bins must be positive, got {self.default_number_of_bins}"
            )

        if self.maximal_number_of_molecule_pairs_to_save < 1:
            raise ValueError(
                "maximal_number_of_molecule_pairs_to_save must be positive, "
                f"got {self.maximal_number_of_molecule_pairs_to_save}"
            )

    def image_scaling_factor(self) -> float:
        return image_scaling_factor(self.image_quality)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the preferences to a dictionary with persisted key names."""
        return {_KEY_MAPPING[k]: v for k, v in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserPreferences":
        """
        Create preferences from a dictionary with persisted key names.

        Unknown keys are ignored, missing keys keep their defaults.

        Raises:
            ValueError: If a value is out of range
        """
        instance = cls()
        for key, value in data.items():
            if key in _REVERSE_MAPPING:
                setattr(instance, _REVERSE_MAPPING[key], value)
        instance.validate()
        return instance

    @classmethod
    def load_from_file(cls, filename: Union[str, Path]) -> "UserPreferences":
        """
        Load preferences from a JSON file.

        Args:
            filename: Path to the preferences file

        Returns:
            UserPreferences: Loaded preferences

        Raises:
            FileNotFoundError: If the preferences file doesn't exist
            PersistenceFailure: If the preferences file cannot be read or is invalid
        """
        filepath = Path(filename)
        if not filepath.exists():
            raise FileNotFoundError(f"Preferences file not found: {filename}")

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise PersistenceFailure(f"Cannot read preferences file {filename}: {e}") from e
        except ValueError as e:
            raise PersistenceFailure(f"Invalid JSON in preferences file {filename}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceFailure(f"Preferences file {filename} does not contain an object")

        try:
            return cls.from_dict(data)
        except (TypeError, ValueError) as e:
            raise PersistenceFailure(f"Invalid value in preferences file {filename}: {e}") from e

    def get_summary(self) -> Dict[str, Any]:
        return {
            'number_of_parallel_threads': self.number_of_parallel_threads,
            'default_number_of_bins': self.default_number_of_bins,
            'maximal_number_of_molecule_pairs_to_save': self.maximal_number_of_molecule_pairs_to_save,
            'image_quality': self.image_quality,
        }


def load_preferences(filename: Optional[Union[str, Path]] = None) -> UserPreferences:
    """
    Load preferences, falling back to defaults.

    Args:
        filename: Path to the preferences file (default: MSC_Files/UserPreferences.json)

    Returns:
        UserPreferences: Loaded or default preferences
    """
    filepath = Path(filename) if filename is not None else get_default_preferences_path()
    try:
        preferences = UserPreferences.load_from_file(filepath)
    except FileNotFoundError:
        logger.info("No preferences file at %s, using default preferences", filepath)
        return UserPreferences()
    except PersistenceFailure as e:
        logger.warning("%s. Using default preferences", e)
        return UserPreferences()

    logger.debug("Loaded preferences from %s", filepath)
    return preferences


def save_preferences(preferences: UserPreferences,
                     filename: Optional[Union[str, Path]] = None) -> Path:
    """
    Save preferences to a JSON file.

    Writes are serialized and go through a temporary file that replaces the
    target, so readers never see a partially written file.

    Args:
        preferences: Preferences to save
        filename: Path to the preferences file (default: MSC_Files/UserPreferences.json)

    Returns:
        Path: Path of the written file

    Raises:
        PersistenceFailure: If the file cannot be written
    """
    filepath = Path(filename) if filename is not None else get_default_preferences_path()
    preferences.validate()

    with _SAVE_LOCK:
        temp_name = None
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=filepath.parent,
                                             prefix=filepath.name, suffix=".tmp",
                                             delete=False) as f:
                temp_name = f.name
                json.dump(preferences.to_dict(), f, indent=4)
            os.replace(temp_name, filepath)
        except OSError as e:
            if temp_name is not None and os.path.exists(temp_name):
                os.remove(temp_name)
            logger.error("Could not save preferences to %s: %s", filepath, e)
            raise PersistenceFailure(f"Could not save preferences to {filepath}: {e}") from e

    logger.debug("Saved preferences to %s", filepath)
    return filepath
