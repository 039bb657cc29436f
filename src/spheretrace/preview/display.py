"""Display pipeline and Matplotlib preview for rendered images.

The renderer accumulates linear radiance. Before an image is shown or written
it goes through tone mapping (optional) and gamma correction. With the default
gamma of 2.0 the gamma step is the square root of each channel.

Features:
    - Gamma correction (2.0 by default)
    - Tone mapping (Reinhard, exposure-based)
    - Matplotlib preview window with the sample count in the title

Example:
    >>> from spheretrace.preview.display import show_preview
    >>> from spheretrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(200, 100)
    >>> renderer.render(100)
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from spheretrace.core.progressive import ProgressiveRenderer


# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]

TONE_MAP_METHODS: tuple[str, ...] = ("none", "reinhard", "exposure")

DEFAULT_GAMMA = 2.0


def tone_map_reinhard(
    image: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """Apply Reinhard tone mapping: c / (1 + c).

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        Tone mapped image in [0, 1) range.
    """
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Apply exposure tone mapping: 1 - exp(-c * exposure).

    Args:
        image: Linear image array of shape (H, W, 3).
        exposure: Exposure value. Higher values brighten the image.

    Returns:
        Tone mapped image in [0, 1) range.
    """
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction: out = in ** (1 / gamma).

    Values are clamped to [0, 1] first so negative inputs cannot produce NaN.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value. 2.0 gives the square-root curve, 1.0 is a no-op.

    Returns:
        Gamma corrected image.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image

    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = DEFAULT_GAMMA,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Run the display pipeline on a linear image.

    1. Tone mapping (optional)
    2. Gamma correction
    3. Clamping to [0, 1]

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value.
        exposure: Exposure value for exposure tone mapping.

    Returns:
        Processed image in [0, 1] range.

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    result = image.copy()

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)

    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = DEFAULT_GAMMA,
    exposure: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Matplotlib is imported lazily; it is only needed for previews.

    Args:
        renderer: The ProgressiveRenderer instance to display.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value.
        exposure: Exposure value for exposure tone mapping.
        title: Custom title (default shows sample count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(
        renderer.get_image_numpy(gamma=1.0),
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {renderer.sample_count} SPP"
        if tone_map != "none":
            title += f" ({tone_map})"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
