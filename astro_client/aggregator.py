"""Reduce batch reports to human-readable summaries."""

from __future__ import annotations

from astro_client.models import BatchItemResult, BatchReport
from astro_client.signs import SIGN_NAMES


def summarize(report: BatchReport) -> str:
    """One-line count summary, e.g. ``10/12 succeeded, 2 failed``."""

    summary = report.summary
    return f"{summary.succeeded}/{summary.total} succeeded, {summary.failed} failed"


def breakdown(report: BatchReport) -> list[str]:
    """One line per item, in batch order, naming the reason of each failure."""

    return [_describe(item) for item in report.items]


def failed_items(report: BatchReport) -> list[BatchItemResult]:
    return [item for item in report.items if not item.ok]


def _describe(item: BatchItemResult) -> str:
    label = SIGN_NAMES.get(item.item_id, item.item_id)
    if item.ok:
        return f"[ok] {label}"
    return f"[failed] {label}: {item.outcome.message}"
