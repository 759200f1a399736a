# src/evaluation/metrics.py — v1
"""Set-based precision / recall / F1 for extracted field values."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel


class ExtractionMetrics(BaseModel):
    """Confusion counts and derived scores for one comparison."""

    precision: float
    recall: float
    f1: float
    tp: int
    fp: int
    fn: int


class MethodComparison(BaseModel):
    method: str
    precision: float
    recall: float
    f1: float


def _flatten(values: Any) -> set[str]:
    """Collapse nested lists of strings into a set; None contributes nothing."""
    out: set[str] = set()
    if values is None:
        return out
    if isinstance(values, str):
        out.add(values)
        return out
    for item in values:
        out |= _flatten(item)
    return out


def calculate_metrics(predicted: Iterable[Any], ground_truth: Iterable[Any]) -> ExtractionMetrics:
    """Compare predicted values to ground truth as sets.

    Empty denominators score 0 rather than raising.
    """
    pred_set = _flatten(predicted)
    truth_set = _flatten(ground_truth)

    tp = len(pred_set & truth_set)
    fp = len(pred_set - truth_set)
    fn = len(truth_set - pred_set)

    precision = 0.0 if tp + fp == 0 else tp / (tp + fp)
    recall = 0.0 if tp + fn == 0 else tp / (tp + fn)
    f1 = 0.0 if precision + recall == 0 else 2 * precision * recall / (precision + recall)

    return ExtractionMetrics(
        precision=precision, recall=recall, f1=f1, tp=tp, fp=fp, fn=fn,
    )


def compare_methods(
    results_by_method: Mapping[str, Iterable[Any]],
    ground_truth: Iterable[Any],
) -> list[MethodComparison]:
    """Score each method's predictions against the same ground truth."""
    truth = list(ground_truth)
    comparison: list[MethodComparison] = []
    for method, predicted in results_by_method.items():
        m = calculate_metrics(predicted, truth)
        comparison.append(
            MethodComparison(method=method, precision=m.precision, recall=m.recall, f1=m.f1)
        )
    return comparison
