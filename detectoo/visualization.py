"""
Heatmap visualization for region analysis results.
"""
import base64
import io
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import cv2
from PIL import Image

from detectoo.image_handler import ImagePreprocessor
from detectoo.models import Region

logger = logging.getLogger(__name__)


@dataclass
class Heatmap:
    """A rendered heatmap image (RGB, same size as the source)."""
    image: np.ndarray

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def height(self) -> int:
        return self.image.shape[0]

    def to_png_bytes(self) -> bytes:
        buffer = io.BytesIO()
        Image.fromarray(self.image).save(buffer, format='PNG')
        return buffer.getvalue()

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.to_png_bytes()).decode('ascii')
        return f"data:image/png;base64,{encoded}"


class HeatmapRenderer:
    """Draws translucent per-region overlays on top of the source image."""

    # RGB fill colours and opacity
    AI_FILL = ((255, 100, 100), 0.5)
    REAL_FILL = ((50, 200, 100), 0.3)

    # RGB border colours and opacity
    AI_STROKE = ((255, 0, 0), 0.8)
    REAL_STROKE = ((0, 150, 0), 0.8)
    STROKE_WIDTH = 2

    def render(self, pixels: np.ndarray, regions: Sequence[Region]) -> Heatmap:
        """
        Render a heatmap for the given regions.

        Args:
            pixels: Source image array (RGB or RGBA)
            regions: Regions to paint, in raster order

        Returns:
            Heatmap with the same dimensions as the source
        """
        canvas = ImagePreprocessor.flatten_to_rgb(pixels).astype(np.float32)
        height, width = canvas.shape[:2]

        for region in regions:
            fill_color, fill_alpha = self.AI_FILL if region.is_ai else self.REAL_FILL
            stroke_color, stroke_alpha = self.AI_STROKE if region.is_ai else self.REAL_STROKE

            tile = canvas[region.y:region.y + region.height, region.x:region.x + region.width]
            self._blend(tile, np.ones(tile.shape[:2], dtype=bool), fill_color, fill_alpha)

            # The border straddles the tile edge, so work on a window one pixel larger
            x0, y0 = max(region.x - 1, 0), max(region.y - 1, 0)
            x1 = min(region.x + region.width + 1, width)
            y1 = min(region.y + region.height + 1, height)
            window = canvas[y0:y1, x0:x1]
            stroke_mask = np.zeros(window.shape[:2], dtype=np.uint8)
            cv2.rectangle(
                stroke_mask,
                (region.x - x0, region.y - y0),
                (region.x - x0 + region.width - 1, region.y - y0 + region.height - 1),
                255,
                self.STROKE_WIDTH
            )
            self._blend(window, stroke_mask > 0, stroke_color, stroke_alpha)

        logger.debug("Rendered heatmap with %d regions", len(regions))
        return Heatmap(image=np.clip(np.round(canvas), 0, 255).astype(np.uint8))

    @staticmethod
    def _blend(target: np.ndarray, selected: np.ndarray,
               color: Tuple[int, int, int], alpha: float) -> None:
        # target is a view into the canvas, so assignment writes through
        if not np.any(selected):
            return
        overlay = np.array(color, dtype=np.float32)
        target[selected] = target[selected] * (1 - alpha) + overlay * alpha

    def create_legend(self, width: int = 220, height: int = 100) -> np.ndarray:
        """
        Create a legend showing region label colours.

        Args:
            width: Legend width
            height: Legend height

        Returns:
            Legend image array (RGB)
        """
        # Create white background
        legend = np.ones((height, width, 3), dtype=np.uint8) * 255

        box_size = 20
        y_offset = 20
        entries = [
            (self.AI_FILL[0], self.AI_STROKE[0], "AI Generated"),
            (self.REAL_FILL[0], self.REAL_STROKE[0], "Real Image"),
        ]

        for fill, stroke, label in entries:
            cv2.rectangle(legend, (10, y_offset), (10 + box_size, y_offset + box_size), fill, -1)
            cv2.rectangle(legend, (10, y_offset), (10 + box_size, y_offset + box_size), stroke, 2)
            cv2.putText(legend, label, (40, y_offset + 15),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 0), 1, cv2.LINE_AA)
            y_offset += 40

        return legend


class HeatmapCache:
    """
    Memoises the last rendered heatmap.

    The cache key is the identity of the source pixel array together with
    the region tuple; a new image or new regions trigger a re-render.
    """

    def __init__(self, renderer: Optional[HeatmapRenderer] = None):
        self.renderer = renderer or HeatmapRenderer()
        self._image = None
        self._regions = None
        self._heatmap = None

    def get(self, pixels: np.ndarray, regions: List[Region]) -> Heatmap:
        regions = tuple(regions)
        if self._heatmap is not None and self._image is pixels and self._regions == regions:
            return self._heatmap

        self._heatmap = self.renderer.render(pixels, regions)
        self._image = pixels
        self._regions = regions
        return self._heatmap

    def clear(self) -> None:
        self._image = None
        self._regions = None
        self._heatmap = None


def heatmap_filename(timestamp_ms: Optional[int] = None) -> str:
    """Download filename for a heatmap, e.g. ``detectoo_heatmap_1700000000000.png``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"detectoo_heatmap_{timestamp_ms}.png"
