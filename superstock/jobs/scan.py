from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from superstock.config import DEFAULT_CONFIG, DEFAULT_HISTORY_PERIOD, WEEKLY_GROUPINGS
from superstock.market_data import fetch_daily_history
from superstock.screens import apply_filters, screen_symbols


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Screen symbols for the superstock base setup")
    parser.add_argument("--symbols", nargs="*", default=[])
    parser.add_argument("--symbols-file", default=None, help="text file with one symbol per line")
    parser.add_argument("--period", default=DEFAULT_HISTORY_PERIOD)
    parser.add_argument("--min-base-weeks", type=int, default=None)
    parser.add_argument("--tight-threshold", type=float, default=None)
    parser.add_argument("--volume-decline", type=float, default=None)
    parser.add_argument("--grouping", choices=WEEKLY_GROUPINGS, default=None)
    parser.add_argument("--qualified-only", action="store_true")
    parser.add_argument("--out-json", default=None)
    parser.add_argument("--out-csv", default=None)
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def load_symbols(args: argparse.Namespace) -> list[str]:
    symbols = list(args.symbols)
    if args.symbols_file:
        text = Path(args.symbols_file).read_text(encoding="utf-8")
        symbols.extend(line.split("#")[0].strip() for line in text.splitlines())
    return [s for s in symbols if s]


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    symbols = load_symbols(args)
    if not symbols:
        raise SystemExit("No symbols given. Use --symbols or --symbols-file.")

    config = DEFAULT_CONFIG.with_overrides(
        min_base_duration_weeks=args.min_base_weeks,
        tight_base_threshold=args.tight_threshold,
        volume_decline_threshold=args.volume_decline,
        weekly_grouping=args.grouping,
    )
    table = screen_symbols(
        symbols,
        config,
        history_fetcher=lambda symbol: fetch_daily_history(symbol, period=args.period),
    )
    if args.qualified_only and not table.empty:
        table = apply_filters(table, {"qualified_only": True})

    if args.out_csv:
        out_csv = Path(args.out_csv)
        out_csv.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(out_csv, index=False)

    counts = table["status"].value_counts().to_dict() if not table.empty else {}
    payload = {
        "created_at_utc": datetime.now(timezone.utc).isoformat(),
        "settings": {
            "period": args.period,
            "min_base_duration_weeks": config.min_base_duration_weeks,
            "tight_base_threshold": config.tight_base_threshold,
            "volume_decline_threshold": config.volume_decline_threshold,
            "weekly_grouping": config.weekly_grouping,
        },
        "symbol_count": len(symbols),
        "status_counts": {str(k): int(v) for k, v in counts.items()},
        "rows": json.loads(table.to_json(orient="records")),
    }
    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.out_json:
        out_json = Path(args.out_json)
        out_json.parent.mkdir(parents=True, exist_ok=True)
        out_json.write_text(text, encoding="utf-8")
    print(text)


if __name__ == "__main__":
    main()
