"""
Data models for the Detectoo application.
"""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Region:
    """A fixed-size tile of the source image with its label."""
    id: int
    x: int
    y: int
    width: int
    height: int
    is_ai: bool
    confidence: int  # 0 to 100


@dataclass(frozen=True)
class VerdictMetrics:
    """Decimal-string metrics attached to a verdict."""
    frequency_entropy: str
    color_variance: str
    edge_consistency: str
    noise_level: str


@dataclass(frozen=True)
class AnalysisResult:
    """Overall verdict for one uploaded file."""
    is_ai: bool
    confidence: int  # 0 to 100
    file_name: str
    file_size_kb: int
    processing_time_label: str
    verdict_label: str
    metrics: VerdictMetrics
    methods: Tuple[str, ...] = ()
