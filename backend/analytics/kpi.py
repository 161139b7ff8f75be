"""
KPI progress arithmetic — pure functions only.

Input:  target / actual numbers, status amounts
Output: derived fields stored on the KPI row
"""
from __future__ import annotations

QUARTER_ORDER = {"Q1": 1, "Q2": 2, "Q3": 3, "Q4": 4}


def _is_number(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def compute_kpi_progress(target: float | None, actual: float | None) -> dict:
    """
    Return {met_target, met_target_percent} for a target / actual pair.

    met_target          — actual >= target, None when either side is missing
    met_target_percent  — actual / target * 100, None when target is 0 or missing
    """
    if not _is_number(target) or not _is_number(actual):
        return {"met_target": None, "met_target_percent": None}
    return {
        "met_target":         actual >= target,
        "met_target_percent": (actual / target) * 100 if target != 0 else None,
    }


def rollup_kpi_statuses(target: float | None, amounts: list[float]) -> dict:
    """The KPI actual is the sum of its status amounts; derived fields follow."""
    actual = float(sum(amounts)) if amounts else 0.0
    return {"actual_metric": actual, **compute_kpi_progress(target, actual)}


def status_sort_key(status: dict) -> tuple:
    """Year descending, quarter ascending."""
    return (-int(status["year"]), QUARTER_ORDER.get(status["quarter"], 9))


def progress_band(kpi: dict) -> str:
    """Dashboard band for a KPI row: met | on_track | at_risk | off_track | no_target."""
    if kpi.get("met_target"):
        return "met"
    pct = kpi.get("met_target_percent")
    if pct is None:
        return "no_target"
    if pct >= 75:
        return "on_track"
    if pct >= 40:
        return "at_risk"
    return "off_track"


def summarize_kpi_progress(kpis: list[dict]) -> dict:
    """Per-KPI band plus band counts for the dashboard progress widget."""
    items = []
    counts = {"met": 0, "on_track": 0, "at_risk": 0, "off_track": 0, "no_target": 0}
    for k in sorted(kpis, key=status_sort_key):
        band = progress_band(k)
        counts[band] += 1
        items.append({
            "id":                 k["id"],
            "name":               k["name"],
            "quarter":            k["quarter"],
            "year":               k["year"],
            "target_metric":      k.get("target_metric"),
            "actual_metric":      k.get("actual_metric"),
            "met_target_percent": k.get("met_target_percent"),
            "band":               band,
        })
    return {"kpis": items, "counts": counts, "total": len(items)}
