"""
Financial rollups for cost and headcount rows — pure functions only.

Input:  cost / headcount rows as dicts with q1..q4 forecast/actual columns
Output: totals, per-quarter breakdowns and variance colour bands
"""
from __future__ import annotations

from collections import defaultdict

QUARTERS = ("q1", "q2", "q3", "q4")

# Fraction of forecast beyond which a variance stops being "close to plan".
VARIANCE_THRESHOLD = 0.10


def row_forecast(row: dict) -> float:
    return sum(float(row.get(f"{q}_forecast") or 0) for q in QUARTERS)


def row_actual(row: dict) -> float:
    return sum(float(row.get(f"{q}_actual") or 0) for q in QUARTERS)


def variance_band(forecast: float, variance: float) -> str | None:
    """
    Classify variance (actual - forecast) into 'green' | 'yellow' | 'red' | None.

    With no forecast, any spend is red and any credit is green.
    Under budget: more than 10% under is green, otherwise yellow.
    Over budget: up to 10% over is yellow, beyond that red.
    """
    if forecast <= 0:
        if variance > 0:
            return "red"
        if variance < 0:
            return "green"
        return None
    ratio = abs(variance) / forecast
    if variance < 0:
        return "green" if ratio > VARIANCE_THRESHOLD else "yellow"
    return "yellow" if ratio <= VARIANCE_THRESHOLD else "red"


def _totals(forecast: float, actual: float) -> dict:
    variance = actual - forecast
    return {
        "forecast":         forecast,
        "actual":           actual,
        "variance":         variance,
        "variance_percent": (variance / forecast) * 100 if forecast > 0 else None,
        "band":             variance_band(forecast, variance),
    }


def annotate_cost_rows(rows: list[dict]) -> list[dict]:
    """Attach per-row forecast / actual / variance / band."""
    return [{**r, **_totals(row_forecast(r), row_actual(r))} for r in rows]


def summarize_costs(rows: list[dict]) -> dict:
    forecast = sum(row_forecast(r) for r in rows)
    actual = sum(row_actual(r) for r in rows)

    by_quarter = {}
    for q in QUARTERS:
        qf = sum(float(r.get(f"{q}_forecast") or 0) for r in rows)
        qa = sum(float(r.get(f"{q}_actual") or 0) for r in rows)
        by_quarter[q.upper()] = _totals(qf, qa)

    grouped: dict[str, dict[str, list[dict]]] = {"type": defaultdict(list), "team": defaultdict(list)}
    for r in rows:
        grouped["type"][r["type"]].append(r)
        grouped["team"][r["team_id"]].append(r)

    def _group_totals(groups: dict[str, list[dict]]) -> dict:
        return {
            key: _totals(sum(row_forecast(r) for r in rs), sum(row_actual(r) for r in rs))
            for key, rs in sorted(groups.items())
        }

    return {
        **_totals(forecast, actual),
        "row_count":  len(rows),
        "by_quarter": by_quarter,
        "by_type":    _group_totals(grouped["type"]),
        "by_team":    _group_totals(grouped["team"]),
    }


def summarize_headcount(rows: list[dict]) -> dict:
    """
    Per-quarter head totals and salary cost.

    Salary is annual, so one head for one quarter costs salary / 4.
    """
    by_quarter = {}
    for q in QUARTERS:
        heads_f = sum(int(r.get(f"{q}_forecast") or 0) for r in rows)
        heads_a = sum(int(r.get(f"{q}_actual") or 0) for r in rows)
        cost_f = sum(float(r["salary"]) * int(r.get(f"{q}_forecast") or 0) / 4 for r in rows)
        cost_a = sum(float(r["salary"]) * int(r.get(f"{q}_actual") or 0) / 4 for r in rows)
        by_quarter[q.upper()] = {
            "forecast_heads": heads_f,
            "actual_heads":   heads_a,
            "forecast_cost":  cost_f,
            "actual_cost":    cost_a,
        }
    forecast_cost = sum(v["forecast_cost"] for v in by_quarter.values())
    actual_cost = sum(v["actual_cost"] for v in by_quarter.values())
    return {
        "row_count":   len(rows),
        "by_quarter":  by_quarter,
        "cost":        _totals(forecast_cost, actual_cost),
        "roles":       sorted({r["role"] for r in rows}),
    }
