"""
Molecule Set Comparator Package

A package for comparing two sets of molecules pairwise on chemistry
descriptors and summarizing the distribution of every descriptor as a
histogram.

This package provides tools for:
- Reading and pairing SMILES and SDF molecule sets
- Calculating descriptor differences and fingerprint similarities with RDKit
- Aggregating comparison values into histograms
- Writing plain-text summary reports, charts and job output

Main modules:
- features: Comparison feature table and chart label types
- utils: RDKit descriptor calculations
- models: Per-pair comparison results
- histogram: Histogram aggregation
- formatting: Plain-text report formatting
- config: User preferences and application constants
- comparison: Reading, pairing and comparing molecules
- job: Job execution and persistence
- charts: Histogram charts
- main: Command-line interface
"""

from .config import PersistenceFailure, UserPreferences, load_preferences, save_preferences
from .comparison import ComparisonInputError, InputType, compare_molecule_pair
from .features import FEATURES, BinLabelType, ComparisonFeature, get_feature
from .formatting import get_horizontal_histogram_block, get_vertical_histogram_block
from .histogram import HistogramData, InvalidConfiguration, build_histogram
from .job import JobResult, load_job, run_job, save_job
from .models import ComparisonResult

__version__ = "1.0.0"
__author__ = "Molecule Set Comparator Team"

__all__ = [
    "PersistenceFailure",
    "UserPreferences",
    "load_preferences",
    "save_preferences",
    "ComparisonInputError",
    "InputType",
    "compare_molecule_pair",
    "FEATURES",
    "BinLabelType",
    "ComparisonFeature",
    "get_feature",
    "get_horizontal_histogram_block",
    "get_vertical_histogram_block",
    "HistogramData",
    "InvalidConfiguration",
    "build_histogram",
    "JobResult",
    "load_job",
    "run_job",
    "save_job",
    "ComparisonResult",
]
