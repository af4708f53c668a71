from __future__ import annotations

import json

import pandas as pd
import pytest

from superstock.jobs import scan


def _table() -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"symbol": "GOOD", "status": "qualified", "qualified": True, "tightness": 0.02},
            {"symbol": "LOOSE", "status": "failed_base_formation", "qualified": False, "tightness": 0.12},
        ]
    )


def test_main_prints_payload_and_applies_overrides(monkeypatch, capsys, tmp_path) -> None:
    seen = {}

    def _fake_screen(symbols, config, history_fetcher=None):
        seen["symbols"] = list(symbols)
        seen["config"] = config
        return _table()

    monkeypatch.setattr(scan, "screen_symbols", _fake_screen)
    symbols_file = tmp_path / "symbols.txt"
    symbols_file.write_text("MSFT\n# comment line\nNVDA  # trailing\n\n", encoding="utf-8")
    out_csv = tmp_path / "out" / "scan.csv"

    scan.main(
        [
            "--symbols",
            "AAPL",
            "--symbols-file",
            str(symbols_file),
            "--tight-threshold",
            "0.08",
            "--grouping",
            "calendar",
            "--out-csv",
            str(out_csv),
            "--log-level",
            "WARNING",
        ]
    )

    payload = json.loads(capsys.readouterr().out)
    assert seen["symbols"] == ["AAPL", "MSFT", "NVDA"]
    assert seen["config"].tight_base_threshold == 0.08
    assert seen["config"].weekly_grouping == "calendar"
    assert seen["config"].min_base_duration_weeks == 12
    assert payload["symbol_count"] == 3
    assert payload["status_counts"] == {"qualified": 1, "failed_base_formation": 1}
    assert [row["symbol"] for row in payload["rows"]] == ["GOOD", "LOOSE"]
    assert out_csv.exists()


def test_main_qualified_only(monkeypatch, capsys) -> None:
    monkeypatch.setattr(scan, "screen_symbols", lambda symbols, config, history_fetcher=None: _table())

    scan.main(["--symbols", "AAPL", "--qualified-only"])

    payload = json.loads(capsys.readouterr().out)
    assert [row["symbol"] for row in payload["rows"]] == ["GOOD"]


def test_main_without_symbols_exits() -> None:
    with pytest.raises(SystemExit):
        scan.main([])
