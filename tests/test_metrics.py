"""Tests for page progress metrics."""
from shopscrape.jobs.metrics import PageMetrics


def test_page_metrics_counts():
    metrics = PageMetrics(total_pages=4)
    metrics.record_page(12)
    metrics.record_failure()
    metrics.record_page(8)

    summary = metrics.get_summary()
    assert summary["pages"] == 3
    assert summary["records"] == 20
    assert summary["failed_pages"] == 1
    assert summary["total_pages"] == 4


def test_page_metrics_report_does_not_fail_on_zero_total():
    metrics = PageMetrics(total_pages=0)
    metrics.report()
    assert metrics.get_eta() == 0.0
