"""Tests for the command-line entry point."""

import json

import pytest
from pallet_ledger.__main__ import main


def _write_snapshot(tmp_path):
    snapshot = {
        "lots": [
            {"id": "L1", "name": "Pallet One", "acquisition_cost": 100.0,
             "tax_amount": 0.0, "acquisition_date": "2020-01-02"},
            {"id": "broken", "acquisition_cost": "free"},
        ],
        "items": [
            {"id": "a", "lot_id": "L1", "name": "Blender", "status": "sold",
             "sale_price": 150.0, "listing_date": "2020-01-03",
             "sale_date": "2020-01-10"},
            {"id": "b", "lot_id": "L1", "name": "Desk Lamp", "status": "listed",
             "listing_price": 25.0, "listing_date": "2020-01-03"},
        ],
        "expenses": [
            {"id": "e1", "amount": 10.0, "category": "supplies",
             "expense_date": "2020-01-05", "linked_lot_ids": ["L1"]},
        ],
        "trips": [
            {"id": "t1", "trip_date": "2020-01-04", "miles": 100,
             "rate_per_mile": 0.575},
            {"id": "t2", "trip_date": "2019-12-20", "miles": 40,
             "rate_per_mile": 0.58},
        ],
    }
    path = tmp_path / "export.json"
    path.write_text(json.dumps(snapshot), encoding="utf-8")
    return str(path)


class TestCli:
    def test_lots(self, tmp_path, capsys):
        main(["lots", "--snapshot", _write_snapshot(tmp_path)])
        out = capsys.readouterr().out
        assert "Pallet One" in out
        assert "$40.00" in out
        assert "1/2" in out
        assert "broken" not in out

    def test_mileage(self, tmp_path, capsys):
        main(["mileage", "--snapshot", _write_snapshot(tmp_path), "--year", "2020"])
        out = capsys.readouterr().out
        assert "Mileage 2020: 1 trip(s)" in out
        assert "Deduction: $57.50" in out

    def test_stale(self, tmp_path, capsys):
        main(["stale", "--snapshot", _write_snapshot(tmp_path), "--threshold", "30"])
        out = capsys.readouterr().out
        assert "Stale items (1)" in out
        assert "Desk Lamp" in out
        assert "(Pallet One)" in out

    def test_report_all_time(self, tmp_path, capsys):
        main(["report", "--snapshot", _write_snapshot(tmp_path), "--preset", "all"])
        out = capsys.readouterr().out
        assert "Profit & Loss: All Time" in out
        assert "(1 items)" in out
        assert "Supplies" in out
        assert "Selling expenses:   $        0.00" in out
        assert "Other" in out

    def test_missing_snapshot(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["lots", "--snapshot", str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1
        assert "Snapshot not found" in capsys.readouterr().err

    def test_null_row_is_skipped(self, tmp_path, capsys):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({
            "lots": [{"id": "L1", "name": "Pallet One", "acquisition_cost": 100.0,
                      "acquisition_date": "2020-01-02"}],
            "items": [{"id": "a", "lot_id": "L1", "status": "sold",
                       "sale_price": 150.0, "sale_date": "2020-01-10"}, None],
        }), encoding="utf-8")
        main(["lots", "--snapshot", str(path)])
        out = capsys.readouterr().out
        assert "Pallet One" in out
        assert "$50.00" in out
        assert "1/1" in out

    def test_invalid_json_exits(self, tmp_path, capsys):
        path = tmp_path / "export.json"
        path.write_text("{\"lots\": [", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["lots", "--snapshot", str(path)])
        assert exc_info.value.code == 1
        assert "Invalid snapshot" in capsys.readouterr().err

    def test_wrong_shape_exits(self, tmp_path, capsys):
        path = tmp_path / "export.json"
        path.write_text(json.dumps({"items": {"id": "a"}}), encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["report", "--snapshot", str(path)])
        assert exc_info.value.code == 1
        assert "Invalid snapshot" in capsys.readouterr().err

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "usage" in capsys.readouterr().out.lower()
