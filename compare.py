import argparse
import json
import os
from typing import Any, List

from unitprice.engine import evaluate
from unitprice.logger import get_logger
from unitprice.models import Item
from unitprice.report import build_ranking_report, build_saved_report, build_units_report
from unitprice.storage import ComparisonNotFound, ComparisonStore, ValidationError
from unitprice.units import RegistryError, default_unit

logger = get_logger(__name__)


def load_items(path: str) -> List[Item]:
    if not os.path.exists(path):
        logger.error("Items file not found at %s", path)
        raise SystemExit(1)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data: Any = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Failed to read items file %s: %s", path, e)
        raise SystemExit(1)

    if not isinstance(data, list) or not data:
        logger.error("Items file must contain a non-empty JSON list.")
        raise SystemExit(1)

    items: List[Item] = []
    for i, raw in enumerate(data, start=1):
        if not isinstance(raw, dict):
            logger.error("Invalid item entry #%d: %s", i, raw)
            raise SystemExit(1)
        raw.setdefault("id", i)
        raw.setdefault("unitType", "volume")
        try:
            raw.setdefault("unit", default_unit(raw["unitType"]))
            items.append(Item.from_dict(raw))
        except (TypeError, ValueError, LookupError, RegistryError) as e:
            logger.error("Invalid item entry #%d: %s", i, e)
            raise SystemExit(1)
    return items


def cmd_rank(args, store: ComparisonStore) -> int:
    items = load_items(args.items)
    print(build_ranking_report(evaluate(items)), end="")
    return 0


def cmd_save(args, store: ComparisonStore) -> int:
    items = load_items(args.items)
    try:
        comparison = store.save(items)
    except ValidationError as e:
        for err in e.errors:
            logger.error("Item %d: %s", err.item_id, err.reason)
        return 1
    print(comparison.id)
    return 0


def cmd_list(args, store: ComparisonStore) -> int:
    print(build_saved_report(store.list_saved()), end="")
    return 0


def cmd_load(args, store: ComparisonStore) -> int:
    try:
        items = store.load(args.id)
    except ComparisonNotFound as e:
        logger.error("%s", e)
        return 1
    print(json.dumps([it.to_dict() for it in items], indent=2))
    print(build_ranking_report(evaluate(items)), end="")
    return 0


def cmd_delete(args, store: ComparisonStore) -> int:
    store.delete(args.id)
    return 0


def cmd_units(args, store: ComparisonStore) -> int:
    print(build_units_report(), end="")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compare", description="Compare unit prices and keep saved comparisons."
    )
    parser.add_argument("--db", default=None, help="SQLite file (default: $DB_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("rank", help="rank the items in a JSON file")
    p.add_argument("items")
    p.set_defaults(func=cmd_rank)

    p = sub.add_parser("save", help="save the items in a JSON file")
    p.add_argument("items")
    p.set_defaults(func=cmd_save)

    p = sub.add_parser("list", help="list saved comparisons")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("load", help="print a saved comparison")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_load)

    p = sub.add_parser("delete", help="delete a saved comparison")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("units", help="list dimensions and units")
    p.set_defaults(func=cmd_units)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    store = ComparisonStore(args.db) if args.db else ComparisonStore()
    try:
        return args.func(args, store)
    except Exception as e:
        logger.exception("Fatal compare error: %s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
