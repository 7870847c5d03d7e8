"""
Matplotlib helpers for plotpatch.

Figure lifetime management and conversion of rendered compositions to PIL
images and files.
"""

import os
import io
from typing import Optional, Dict, Any, Union
from contextlib import contextmanager
import functools
import matplotlib.pyplot as plt
from PIL import Image
import logging

from ...utils.json_utils import safe_json_dump

logger = logging.getLogger(__name__)

__all__ = [
    'managed_figure',
    'ensure_figure_closed',
    'plot_to_image',
    'save_composition_with_metadata',
    'close_figure_safely'
]


@contextmanager
def managed_figure(*args, **kwargs):
    """
    Context manager for matplotlib figures that ensures proper cleanup.

    Usage:
        with managed_figure(figsize=(10, 8)) as fig:
            # Use figure
            pass
        # Figure is automatically closed
    """
    fig = plt.figure(*args, **kwargs)
    try:
        yield fig
    finally:
        plt.close(fig)


def ensure_figure_closed(func):
    """
    Decorator that closes any figures a function leaves open.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        initial_figures = set(plt.get_fignums())
        try:
            return func(*args, **kwargs)
        finally:
            new_figures = set(plt.get_fignums()) - initial_figures
            for fignum in new_figures:
                plt.close(fignum)
    return wrapper


def plot_to_image(
    fig: plt.Figure,
    dpi: int = 100,
    force_rgb: bool = True,
    max_size: Optional[int] = None,
    format: str = 'png',
    close_fig: bool = True
) -> Image.Image:
    """
    Convert matplotlib figure to PIL Image.

    Args:
        fig: Matplotlib figure
        dpi: Resolution for image conversion
        force_rgb: Convert RGBA to RGB if needed
        max_size: Maximum width/height (resizes if larger)
        format: Image format ('png', 'jpg', etc.)
        close_fig: Whether to close the figure after conversion

    Returns:
        PIL Image object
    """
    try:
        img_buffer = io.BytesIO()
        # The layout is already solved; a tight bbox would crop reserved space
        fig.savefig(img_buffer, format=format, dpi=dpi, facecolor=fig.get_facecolor())
        img_buffer.seek(0)
        image = Image.open(img_buffer)
        image.load()

        if force_rgb and image.mode == 'RGBA':
            rgb_image = Image.new('RGB', image.size, (255, 255, 255))
            rgb_image.paste(image, mask=image.split()[3])
            image = rgb_image

        if max_size and (image.width > max_size or image.height > max_size):
            ratio = min(max_size / image.width, max_size / image.height)
            new_width = max(1, int(image.width * ratio))
            new_height = max(1, int(image.height * ratio))
            image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)

        return image
    finally:
        if close_fig:
            plt.close(fig)


def save_composition_with_metadata(
    fig: plt.Figure,
    save_path: str,
    metadata: Optional[Dict[str, Any]] = None,
    dpi: int = 100,
    force_rgb: bool = True,
    max_size: Optional[int] = None,
    close_fig: bool = True
) -> Dict[str, Union[str, int, bool]]:
    """
    Save a rendered composition with optional metadata.

    Metadata (for instance the solved layout from ``GridAssignment.describe``)
    is written next to the image as ``<name>_metadata.json``.

    Returns:
        Dictionary with save information (path, size, etc.)
    """
    directory = os.path.dirname(save_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    image = plot_to_image(fig, dpi=dpi, force_rgb=force_rgb, max_size=max_size, close_fig=close_fig)
    image.save(save_path)

    metadata_saved = False
    if metadata:
        metadata_path = os.path.splitext(save_path)[0] + '_metadata.json'
        metadata_saved = safe_json_dump(metadata, metadata_path, logger=logger, indent=2)

    logger.info(f"Saved composition to {save_path} ({image.width}x{image.height})")
    return {
        'path': save_path,
        'width': image.width,
        'height': image.height,
        'mode': image.mode,
        'dpi': dpi,
        'metadata_saved': metadata_saved
    }


def close_figure_safely(fig: Optional[plt.Figure]) -> None:
    """
    Close a matplotlib figure if it exists.

    Args:
        fig: Matplotlib figure to close (can be None)
    """
    if fig is not None:
        plt.close(fig)
