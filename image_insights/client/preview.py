"""
Purpose:
- Fit an uploaded image into the preview box (aspect ratio preserved) and encode it as a PNG data URL.
- Track the preview box size in a small Viewport object that notifies listeners on resize.

Notes:
- The preview is cosmetic; the original bytes are what get sent to the relay.
"""

from __future__ import annotations
import base64
import logging
import math
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, List, Tuple

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Bounds:
    width: float
    height: float

    @classmethod
    def from_width(cls, width: float, aspect: float) -> "Bounds":
        """Box of the given width whose width/height ratio is `aspect`."""
        return cls(width=width, height=width / aspect)

@dataclass
class Preview:
    data_url: str
    width: int
    height: int

def fit_dimensions(container_width: float, container_height: float,
                   img_width: float, img_height: float) -> Tuple[float, float]:
    """
    Largest (width, height) with the image's aspect ratio that fits inside the container.
    Wider-than-container images pin the width; everything else pins the height.
    """
    if min(container_width, container_height, img_width, img_height) <= 0:
        raise ValueError("container and image dimensions must be positive")

    img_ratio = img_width / img_height
    container_ratio = container_width / container_height

    if img_ratio > container_ratio:
        final_width = container_width
        final_height = container_width / img_ratio
    else:
        final_height = container_height
        final_width = container_height * img_ratio

    # float error must never push us past the box
    return min(final_width, container_width), min(final_height, container_height)

def render_preview(data: bytes, bounds: Bounds) -> Preview:
    """
    Decode `data`, scale it to fit `bounds`, and return it as a PNG data URL.
    Raises PIL.UnidentifiedImageError / OSError for bytes that aren't a readable image.
    """
    with Image.open(BytesIO(data)) as img:
        img = ImageOps.exif_transpose(img)
        w, h = fit_dimensions(bounds.width, bounds.height, img.width, img.height)
        size = (max(1, math.floor(w)), max(1, math.floor(h)))
        scaled = img.convert("RGBA").resize(size, Image.Resampling.LANCZOS)

    buf = BytesIO()
    scaled.save(buf, format="PNG")
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    return Preview(data_url=f"data:image/png;base64,{encoded}", width=size[0], height=size[1])

ResizeListener = Callable[[Bounds], None]

class Viewport:
    """Current preview box plus the listeners that care when it changes."""

    def __init__(self, bounds: Bounds):
        self.bounds = bounds
        self._listeners: List[ResizeListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: ResizeListener) -> Callable[[], None]:
        """Register `listener`; the returned callable removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def resize(self, bounds: Bounds) -> None:
        if bounds == self.bounds:
            return
        self.bounds = bounds
        logger.debug("Viewport resized to %.0fx%.0f", bounds.width, bounds.height)
        for listener in list(self._listeners):
            listener(bounds)
