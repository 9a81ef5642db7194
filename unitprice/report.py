# unitprice/report.py
import math
import os
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from .models import RankingResult, SavedComparison
from .units import base_unit, dimensions, units_of

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)

PRICE_DECIMALS = int(os.getenv("PRICE_DECIMALS", "4"))


def _price_per_unit_str(value: float, unit: str) -> str:
    return f"${value:.{PRICE_DECIMALS}f}/{unit}"


def _pct_str(pct: float) -> str:
    if math.isinf(pct):
        return "infinitely more expensive"
    return f"{pct:.2f}% more expensive"


def build_ranking_report(result: RankingResult) -> str:
    template = env.get_template("ranking.txt")

    rows = []
    for r in result.results:
        is_best = result.is_best(r)
        rows.append(
            {
                "name": r.name or f"Item {r.id}",
                "ppu_str": _price_per_unit_str(
                    r.price_per_base_unit, base_unit(r.item.unit_type)
                ),
                "is_best": is_best,
                "pct_str": "" if is_best else _pct_str(r.percentage_diff),
            }
        )

    excluded = [
        {"item_id": o.item_id, "status": o.status.value, "reason": o.reason}
        for o in result.outcomes
        if not o.included
    ]

    return template.render(rows=rows, excluded=excluded)


def build_saved_report(saved: List[SavedComparison]) -> str:
    template = env.get_template("saved.txt")
    entries = [
        {"id": sc.id, "label": sc.label, "date": sc.date, "count": len(sc.items)}
        for sc in saved
    ]
    return template.render(entries=entries)


def build_units_report() -> str:
    template = env.get_template("units.txt")
    dims = [
        {"name": d.value, "base": base_unit(d), "units": list(units_of(d))}
        for d in dimensions()
    ]
    return template.render(dimensions=dims)
