"""Preview module for output and visualization.

Components:
    display: Gamma correction, tone mapping and Matplotlib preview
    export: Image file export through Pillow

Example:
    >>> from spheretrace.preview import save_png, show_preview
    >>> from spheretrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(200, 100)
    >>> renderer.render(100)
    >>> save_png(renderer, "output.png")
    >>> show_preview(renderer)
"""

from spheretrace.preview.display import (
    TONE_MAP_METHODS,
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from spheretrace.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_image_array,
    save_png,
)

__all__ = [
    # Display functions
    "show_preview",
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    "TONE_MAP_METHODS",
    # Export functions
    "save_png",
    "save_image_array",
    "image_to_uint8",
    "compute_rmse",
]
