import re

from detectoo.models import AnalysisResult, Region, VerdictMetrics
from detectoo.report import REPORT_MIME_TYPE, format_report, report_filename


def make_result(**overrides):
    values = dict(
        is_ai=True,
        confidence=78,
        file_name="sunset.jpg",
        file_size_kb=412,
        processing_time_label="1432ms",
        verdict_label="🤖 AI GENERATED",
        metrics=VerdictMetrics("71.3", "66.0", "41.9", "12.5"),
    )
    values.update(overrides)
    return AnalysisResult(**values)


def make_regions(labels):
    return [Region(id=i, x=i * 80, y=0, width=80, height=80, is_ai=label, confidence=75)
            for i, label in enumerate(labels)]


def test_report_contains_result_fields_verbatim():
    report = format_report(make_result(), make_regions([True, False, True]))

    assert report.startswith("DETECTOO - AI IMAGE DETECTION REPORT\n" + "=" * 60 + "\n")
    assert "File: sunset.jpg\n" in report
    assert "Size: 412 KB\n" in report
    assert "Processing Time: 1432ms\n" in report
    assert "VERDICT:\n🤖 AI GENERATED\nConfidence: 78%\n" in report
    assert "• Frequency Entropy: 71.3%" in report
    assert "• Color Variance: 66.0%" in report
    assert "• Edge Consistency: 41.9%" in report
    assert "• Noise Level: 12.5%" in report
    assert report.endswith("Generated by Detectoo - Open Source AI Detection Tool")


def test_region_counts_add_up():
    report = format_report(make_result(), make_regions([True, False, True, True, False]))

    total = int(re.search(r"Total Regions: (\d+)", report).group(1))
    ai = int(re.search(r"AI-Generated Regions: (\d+)", report).group(1))
    real = int(re.search(r"Real/Natural Regions: (\d+)", report).group(1))
    assert (total, ai, real) == (5, 3, 2)
    assert ai + real == total


def test_report_is_reproducible():
    result = make_result(is_ai=False, verdict_label="✅ REAL IMAGE")
    regions = make_regions([False, False])

    assert format_report(result, regions) == format_report(result, regions)


def test_report_with_no_regions():
    report = format_report(make_result(), [])
    assert "Total Regions: 0\nAI-Generated Regions: 0\nReal/Natural Regions: 0" in report


def test_report_filename():
    assert report_filename(1700000000123) == "detectoo_report_1700000000123.txt"
    assert re.fullmatch(r"detectoo_report_\d{13}\.txt", report_filename())
    assert REPORT_MIME_TYPE == "text/plain"
