"""
區域取樣模組 - 以像素均勻度將影像切分並標記為 AI / 真實區域
Region sampling module using a per-tile pixel uniformity heuristic.

The image is split into a grid of fixed-size tiles. For each tile the
average inter-channel difference is computed; tiles whose channels barely
differ are flagged as AI-like. The confidence attached to each label is
drawn at random and is not a calibrated probability.
"""
import logging
from typing import List, Optional

import numpy as np

from detectoo.models import Region

logger = logging.getLogger(__name__)


class RegionSampler:
    """
    Splits an image into tiles and labels each tile by channel uniformity.

    取樣流程：
    1. 以 TILE_SIZE 為步長，逐列（row-major）掃描影像
    2. 計算每個區塊的 |R-G| + |G-B| 平均值
    3. 平均值低於 AI_THRESHOLD 的區塊標記為 AI
    4. 以隨機數產生信心度
    """

    TILE_SIZE = 80
    AI_THRESHOLD = 20

    # Confidence ranges as (low, span): value lies in [low, low + span)
    AI_CONFIDENCE = (70, 30)
    REAL_CONFIDENCE = (30, 40)

    def __init__(self, tile_size: int = TILE_SIZE, threshold: float = AI_THRESHOLD,
                 rng=None):
        """
        Initialize the region sampler.

        Args:
            tile_size: Edge length of each square tile in pixels
            threshold: Uniformity below this value marks a tile as AI
            rng: Random source exposing ``random() -> float`` in [0, 1).
                 Defaults to a fresh numpy Generator.
        """
        if tile_size <= 0:
            raise ValueError("tile_size must be positive")
        self.tile_size = tile_size
        self.threshold = threshold
        self.rng = rng if rng is not None else np.random.default_rng()

    def sample_regions(self, pixels: np.ndarray) -> List[Region]:
        """
        Partition the image into tiles and label each one.

        Args:
            pixels: Decoded image array of shape (H, W, C) with C >= 3,
                    8-bit RGB or RGBA channels

        Returns:
            Regions in raster scan order. Tiles that could not be read are
            omitted.
        """
        if pixels.ndim != 3 or pixels.shape[2] < 3:
            raise ValueError(f"Expected an RGB(A) pixel array, got shape {pixels.shape}")

        height, width = pixels.shape[:2]
        regions = []
        region_id = 0

        for y in range(0, height, self.tile_size):
            for x in range(0, width, self.tile_size):
                tile_w = min(self.tile_size, width - x)
                tile_h = min(self.tile_size, height - y)

                try:
                    tile = self._read_tile(pixels, x, y, tile_w, tile_h)
                    uniformity = self.compute_uniformity(tile)
                except Exception as e:
                    logger.warning("Region processing error at (%d, %d): %s", x, y, e)
                    continue

                is_ai = uniformity < self.threshold
                regions.append(Region(
                    id=region_id,
                    x=x,
                    y=y,
                    width=tile_w,
                    height=tile_h,
                    is_ai=is_ai,
                    confidence=self._draw_confidence(is_ai)
                ))
                region_id += 1

        logger.debug("Sampled %d regions from %dx%d image", len(regions), width, height)
        return regions

    @staticmethod
    def compute_uniformity(tile: np.ndarray) -> float:
        """
        Average of |R-G| + |G-B| over every pixel of the tile.

        Args:
            tile: Pixel block of shape (h, w, C) with C >= 3

        Returns:
            Uniformity statistic (0 for perfectly grey tiles)
        """
        pixel_count = tile.shape[0] * tile.shape[1]
        if pixel_count == 0:
            raise ValueError("empty tile")

        # Widen before subtracting so uint8 values cannot wrap around
        channels = tile[:, :, :3].astype(np.int32)
        red, green, blue = channels[:, :, 0], channels[:, :, 1], channels[:, :, 2]
        total = np.abs(red - green).sum() + np.abs(green - blue).sum()
        return float(total) / pixel_count

    def _read_tile(self, pixels: np.ndarray, x: int, y: int,
                   width: int, height: int) -> np.ndarray:
        return pixels[y:y + height, x:x + width]

    def _draw_confidence(self, is_ai: bool) -> int:
        low, span = self.AI_CONFIDENCE if is_ai else self.REAL_CONFIDENCE
        # floor keeps the value strictly below low + span
        value = low + int(self.rng.random() * span)
        return min(value, low + span - 1)


def summarize_regions(regions: List[Region]) -> dict:
    """Count AI and real regions in a region sequence."""
    ai_count = sum(1 for region in regions if region.is_ai)
    return {
        'total': len(regions),
        'ai': ai_count,
        'real': len(regions) - ai_count
    }


def mean_confidence(regions: List[Region], is_ai: Optional[bool] = None) -> float:
    """Average region confidence, optionally restricted to one label."""
    selected = [r.confidence for r in regions if is_ai is None or r.is_ai == is_ai]
    if not selected:
        return 0.0
    return float(np.mean(selected))
