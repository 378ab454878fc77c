"""
Histogram charts.

This module draws HistogramData objects as bar charts with matplotlib and
exports them as images or as a multi-page PDF report.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.backends.backend_pdf import PdfPages

from .config import image_scaling_factor
from .features import BinLabelType
from .formatting import get_bin_labels
from .histogram import HistogramData

logger = logging.getLogger(__name__)

BASE_DPI = 100
IMAGE_FORMATS = {".png", ".jpg", ".jpeg"}


def plot_histogram(histogram: HistogramData, label_type: BinLabelType = BinLabelType.INTERVAL,
                   ax: Optional[plt.Axes] = None) -> plt.Axes:
    """
    Draw a histogram as a bar chart.

    Args:
        histogram: Histogram to draw
        label_type: How bins are labelled on the x axis
        ax: Axes to draw on (a new figure is created if None)

    Returns:
        plt.Axes: The axes containing the chart
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(10, 6))

    labels = get_bin_labels(histogram, label_type)
    positions = np.arange(histogram.number_of_bins)
    ax.bar(positions, histogram.frequencies, width=0.9, color='#40466e', edgecolor='white')
    ax.set_xticks(positions)
    rotate = histogram.number_of_bins > 5
    ax.set_xticklabels(labels, rotation=45 if rotate else 0,
                       ha='right' if rotate else 'center', fontsize=9)

    ax.set_title(histogram.feature.name, fontsize=14, fontweight='bold')
    ax.set_xlabel(f"Bins ({label_type.description})")
    ax.set_ylabel("Frequency [%]" if histogram.relative else "Frequency")
    ax.grid(axis='y', alpha=0.3)
    return ax


def save_histogram_image(histogram: HistogramData, filename: Union[str, Path],
                         label_type: BinLabelType = BinLabelType.INTERVAL,
                         image_quality: float = 0.5) -> Path:
    """
    Save a histogram chart as PNG or JPEG image.

    The resolution grows with the image quality. JPEG images additionally
    use the quality as compression quality.

    Args:
        histogram: Histogram to draw
        filename: Image path (.png, .jpg or .jpeg)
        label_type: How bins are labelled on the x axis
        image_quality: Image quality in [0, 1]

    Returns:
        Path: Path of the written image

    Raises:
        ValueError: If the file extension is not a supported image format
    """
    filepath = Path(filename)
    suffix = filepath.suffix.lower()
    if suffix not in IMAGE_FORMATS:
        raise ValueError(f"Unsupported image format {suffix!r}, use one of {sorted(IMAGE_FORMATS)}")

    dpi = int(round(BASE_DPI * (2.0 - image_scaling_factor(image_quality))))
    save_kwargs = {'dpi': dpi, 'bbox_inches': 'tight'}
    if suffix in {".jpg", ".jpeg"}:
        save_kwargs['pil_kwargs'] = {'quality': int(round(5 + 90 * min(max(image_quality, 0.0), 1.0)))}

    filepath.parent.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(10, 6))
    try:
        plot_histogram(histogram, label_type, ax)
        fig.tight_layout()
        fig.savefig(filepath, **save_kwargs)
    finally:
        plt.close(fig)

    logger.debug("Saved %s histogram image to %s", histogram.feature.name, filepath)
    return filepath


def generate_histogram_report(histograms: Iterable[HistogramData], filename: Union[str, Path],
                              label_type: BinLabelType = BinLabelType.INTERVAL) -> Path:
    """
    Generate a PDF report with one histogram chart per page.

    Args:
        histograms: Histograms to include
        filename: Path of the PDF file
        label_type: How bins are labelled on the x axis

    Returns:
        Path: Path of the written report
    """
    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    number_of_pages = 0
    with PdfPages(filepath) as pdf:
        for histogram in histograms:
            fig, ax = plt.subplots(figsize=(11, 7))
            try:
                plot_histogram(histogram, label_type, ax)
                info_text = (f"Pairs: {histogram.number_of_valid_values}   "
                             f"min: {histogram.minimum:.3f}   max: {histogram.maximum:.3f}   "
                             f"average: {histogram.average:.3f}")
                fig.text(0.5, 0.01, info_text, ha='center', va='bottom', fontsize=10,
                         bbox=dict(boxstyle="round,pad=0.5", facecolor="lightgray", alpha=0.8))
                fig.tight_layout(rect=(0, 0.05, 1, 1))
                pdf.savefig(fig)
                number_of_pages += 1
            finally:
                plt.close(fig)

    logger.info("Generated histogram report with %d pages: %s", number_of_pages, filepath)
    return filepath
