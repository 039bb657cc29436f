"""Progressive renderer: the per-pixel sampling driver.

This module wraps the integrator kernels with:
- Render settings bundled in one dataclass
- Batch rendering (multiple SPP in one call)
- Progress callbacks and a generator form for UI updates
- Reset/resize and image output helpers

Every pass traces one jittered ray per pixel and folds it into the running
per-pixel average, so the image converges as samples are added.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.progressive import ProgressiveRenderer, RenderSettings
    >>> from spheretrace.scene.presets import create_two_sphere_scene
    >>> from spheretrace.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_two_sphere_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer.from_settings(RenderSettings(samples=100))
    >>> renderer.render(100)
    >>> image = renderer.get_image_numpy(gamma=2.0)
"""

from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

from spheretrace.core.integrator import (
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    T_MIN,
    ShadeMode,
    clear_render_target,
    configure_integrator,
    get_image,
    get_normalized_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Parameters for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        max_depth: Maximum number of scatter events per path.
        t_min: Lower bound of the hit window.
        gamma: Display gamma. 2.0 is the square-root tone curve.
        shade_mode: How surface hits are colored.
    """

    width: int = 200
    height: int = 100
    samples: int = 100
    max_depth: int = MAX_DEPTH
    t_min: float = T_MIN
    gamma: float = 2.0
    shade_mode: ShadeMode = ShadeMode.MATERIAL

    def __post_init__(self) -> None:
        if not (0 < self.width <= MAX_IMAGE_WIDTH and 0 < self.height <= MAX_IMAGE_HEIGHT):
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) must be positive and "
                f"no larger than {MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
            )
        if self.samples <= 0:
            raise ValueError(f"samples must be positive, got {self.samples}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.t_min < 0.0:
            raise ValueError(f"t_min must be non-negative, got {self.t_min}")
        if self.gamma <= 0.0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        self.shade_mode = ShadeMode(self.shade_mode)

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps width/height and delegates to the integrator's global
    buffers (which are Taichi fields), so one renderer is active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).

        Raises:
            ValueError: If dimensions are invalid.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> "ProgressiveRenderer":
        """Create a renderer and configure the integrator from settings."""
        configure_integrator(
            max_depth=settings.max_depth,
            t_min=settings.t_min,
            shade_mode=settings.shade_mode,
        )
        return cls(settings.width, settings.height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulated samples, keeping the image dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions are invalid.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the samples into the existing buffer, so repeated calls
        keep refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback called after each batch with
                (current_total_samples, target_total_samples).
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Stopping iteration early leaves the samples rendered so far in the
        buffer.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples <= 0:
            return
        batch_size = max(1, batch_size)

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_image(self) -> Any:
        """Get the raw Taichi color buffer field (full preallocated size)."""
        return get_image()

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the averaged image as a NumPy array.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).
                Use 2.0 for the square-root display curve.

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32.
        """
        image = get_normalized_image_numpy()

        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma).astype(np.float32)

        return image

    def get_image_uint8(self, gamma: float = 2.0) -> npt.NDArray[np.uint8]:
        """Get the averaged image as an 8-bit NumPy array.

        Args:
            gamma: Gamma correction value. Default 2.0.

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        from spheretrace.preview.export import image_to_uint8

        return image_to_uint8(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str, gamma: float = 2.0) -> None:
        """Save the averaged image; the format follows the file extension."""
        from spheretrace.preview.export import save_image_array

        save_image_array(self.get_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
