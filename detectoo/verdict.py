"""
Synthetic verdict generator.

The overall verdict is random placeholder logic. It only sees the file name
and byte size and is computed independently of the region labels produced
by ``RegionSampler``.
"""
import math

import numpy as np

from detectoo.models import AnalysisResult, VerdictMetrics

AI_VERDICT_LABEL = "🤖 AI GENERATED"
REAL_VERDICT_LABEL = "✅ REAL IMAGE"

ANALYSIS_METHODS = ('Pixel Pattern Analysis', 'Frequency Analysis', 'Edge Detection')


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


class SyntheticVerdictGenerator:
    """Produces a random AnalysisResult for an uploaded file."""

    AI_PROBABILITY_CUTOFF = 0.45  # random() above this -> AI (p = 0.55)

    # confidence = random() * CONFIDENCE_SPREAD + base
    CONFIDENCE_SPREAD = 0.25
    AI_CONFIDENCE_BASE = 0.65
    REAL_CONFIDENCE_BASE = 0.55

    def __init__(self, rng=None):
        """
        Args:
            rng: Random source exposing ``random() -> float`` in [0, 1)
        """
        self.rng = rng if rng is not None else np.random.default_rng()

    def generate(self, file_name: str, file_size: int) -> AnalysisResult:
        """
        Generate a verdict for a file.

        Args:
            file_name: Original file name
            file_size: File size in bytes

        Returns:
            AnalysisResult with random verdict, confidence and metrics
        """
        is_ai = self._random() > self.AI_PROBABILITY_CUTOFF
        base = self.AI_CONFIDENCE_BASE if is_ai else self.REAL_CONFIDENCE_BASE
        confidence = self._random() * self.CONFIDENCE_SPREAD + base
        processing_ms = self._random() * 1000 + 1000

        return AnalysisResult(
            is_ai=is_ai,
            confidence=round_half_up(confidence * 100),
            file_name=file_name,
            file_size_kb=round_half_up(file_size / 1024),
            processing_time_label=f"{processing_ms:.0f}ms",
            verdict_label=AI_VERDICT_LABEL if is_ai else REAL_VERDICT_LABEL,
            metrics=self._generate_metrics(is_ai),
            methods=ANALYSIS_METHODS
        )

    def _generate_metrics(self, is_ai: bool) -> VerdictMetrics:
        # AI verdicts skew towards higher entropy/variance and lower edge consistency
        return VerdictMetrics(
            frequency_entropy=f"{self._random() * 40 + (50 if is_ai else 10):.1f}",
            color_variance=f"{self._random() * 30 + (60 if is_ai else 20):.1f}",
            edge_consistency=f"{self._random() * 25 + (30 if is_ai else 75):.1f}",
            noise_level=f"{self._random() * 40:.1f}"
        )

    def _random(self) -> float:
        return float(self.rng.random())
