"""Image export utilities for rendered images.

Images are written through Pillow, which picks the file format from the
extension:
    - .png: 8-bit RGB PNG
    - .ppm: binary (P6) portable pixmap
    - anything else Pillow can write in RGB mode

Channels are converted to 8-bit by scaling to [0, 255], clamping, and
truncating toward zero.

Example:
    >>> from spheretrace.preview.export import save_png
    >>> from spheretrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(200, 100)
    >>> renderer.render(100)
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from spheretrace.preview.display import (
    DEFAULT_GAMMA,
    ToneMapMethod,
    process_image_for_display,
)

if TYPE_CHECKING:
    from spheretrace.core.progressive import ProgressiveRenderer


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = DEFAULT_GAMMA,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit channels.

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value.
        exposure: Exposure value for exposure tone mapping.

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the image is not of shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")

    processed = process_image_for_display(
        image,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )

    # astype truncates toward zero
    return np.clip(255.0 * processed, 0.0, 255.0).astype(np.uint8)


def save_image_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = DEFAULT_GAMMA,
    exposure: float = 1.0,
) -> None:
    """Save a linear image array to a file.

    Args:
        image: Linear image array of shape (H, W, 3), top row first.
        filepath: Output path. The extension selects the format.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value.
        exposure: Exposure value for exposure tone mapping.

    Raises:
        ValueError: If the image shape is wrong or Pillow cannot tell the
            format from the extension.
    """
    image_uint8 = image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(image_uint8).save(filepath)


def save_png(
    renderer: ProgressiveRenderer,
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = DEFAULT_GAMMA,
    exposure: float = 1.0,
) -> None:
    """Save the renderer's averaged image.

    Despite the name, the format follows the extension of ``filepath``.

    Args:
        renderer: The ProgressiveRenderer instance to save.
        filepath: Output file path.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value.
        exposure: Exposure value for exposure tone mapping.
    """
    save_image_array(
        renderer.get_image_numpy(gamma=1.0),
        filepath,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
