"""Tests for the command-line entry point."""

import pytest

from margin_sentinel.__main__ import main

SALES_CSV = (
    "日付,,,0001:本店\n"
    ",,,\n"
    ",,,\n"
    "2026-02-01,,,1000\n"
    "2026-02-02,,,1100\n"
)

PURCHASE_CSV = (
    ",,,0000001:青果市場,\n"
    ",,,0001:本店,\n"
    "日付,,,原価金額,売価金額\n"
    ",,,,\n"
    "2026-02-01,,,700,1000\n"
)


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "売上.csv").write_text(SALES_CSV, encoding="utf-8")
    (tmp_path / "仕入.csv").write_text(PURCHASE_CSV, encoding="utf-8")
    (tmp_path / "readme.md").write_text("ignored", encoding="utf-8")
    return tmp_path


class TestCli:
    def test_types(self, capsys):
        main(["types"])
        out = capsys.readouterr().out
        assert "purchase" in out
        assert "departmentKpi" in out

    def test_import_directory(self, data_dir, capsys):
        main(["import", str(data_dir), "--year", "2026", "--month", "2"])
        out = capsys.readouterr().out
        assert "Imported 2 file(s), 0 failed" in out
        assert "readme.md" not in out

    def test_import_with_validation_errors_exits_1(self, data_dir, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["import", str(data_dir / "売上.csv")])
        assert exc.value.code == 1
        assert "no purchase data" in capsys.readouterr().out

    def test_missing_path(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["import", str(tmp_path / "nope.csv")])
        assert exc.value.code == 1
        assert "Path not found" in capsys.readouterr().err

    def test_report(self, data_dir, capsys):
        main(["report", str(data_dir), "--year", "2026", "--month", "2"])
        out = capsys.readouterr().out
        assert "=== 本店 (1) ===" in out
        assert "2,100" in out
        assert "--- Alerts" in out

    def test_report_unknown_store(self, data_dir, capsys):
        with pytest.raises(SystemExit):
            main(["report", str(data_dir), "--year", "2026", "--month", "2", "--store", "9"])
        assert "Unknown store '9'" in capsys.readouterr().err

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1
