"""
Plain-text report generation for analysis results.
"""
import time
from typing import List, Optional

from detectoo.models import AnalysisResult, Region
from detectoo.region_sampler import summarize_regions

REPORT_MIME_TYPE = "text/plain"
SEPARATOR = "=" * 60


def format_report(result: AnalysisResult, regions: List[Region]) -> str:
    """
    Format an analysis result and its regions as a text report.

    Only already computed values are read, so the same inputs always
    produce the same text.

    Args:
        result: Stored analysis result
        regions: Region sequence from the same analysis

    Returns:
        Report text
    """
    counts = summarize_regions(regions)
    metrics = result.metrics

    lines = [
        "DETECTOO - AI IMAGE DETECTION REPORT",
        SEPARATOR,
        "",
        "FILE INFORMATION:",
        f"File: {result.file_name}",
        f"Size: {result.file_size_kb} KB",
        f"Processing Time: {result.processing_time_label}",
        "",
        "VERDICT:",
        result.verdict_label,
        f"Confidence: {result.confidence}%",
        "",
        "REGION ANALYSIS:",
        f"Total Regions: {counts['total']}",
        f"AI-Generated Regions: {counts['ai']}",
        f"Real/Natural Regions: {counts['real']}",
        "",
        "DETAILED METRICS:",
        f"• Frequency Entropy: {metrics.frequency_entropy}%",
        f"• Color Variance: {metrics.color_variance}%",
        f"• Edge Consistency: {metrics.edge_consistency}%",
        f"• Noise Level: {metrics.noise_level}%",
        "",
        SEPARATOR,
        "Generated by Detectoo - Open Source AI Detection Tool",
    ]
    return "\n".join(lines)


def report_filename(timestamp_ms: Optional[int] = None) -> str:
    """
    Build the download filename for a report.

    Args:
        timestamp_ms: Unix time in milliseconds, defaults to now

    Returns:
        Filename like ``detectoo_report_1700000000000.txt``
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"detectoo_report_{timestamp_ms}.txt"
