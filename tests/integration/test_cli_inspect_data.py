from __future__ import annotations

from pathlib import Path

from resident_import.cli import main as cli_main


def test_inspect_data_prints_mapping_and_sample_rows(temp_workdir: Path, write_csv, capsys):
    rows = "\n".join(f"Resident {i},{i},r-{i}" for i in range(5))
    csv_file = write_csv(f"Name,Empl ID,Dorm\n{rows}\n")
    code = cli_main([str(csv_file), "--owner", "ra-7", "--inspect-data"])
    out = capsys.readouterr().out

    assert code == 0
    assert "COLUMNS: ['Name', 'Empl ID', 'Dorm']" in out
    assert "'id': 'Empl ID'" in out
    assert "'room': 'Dorm'" in out
    assert "ROWS: 5" in out
    assert out.count("  row ") == 3
    assert "row 4:" in out
    assert "row 5:" not in out
    assert not (temp_workdir / "logs").exists()


def test_debug_flag_enables_debug_lines(temp_workdir: Path, write_csv, capsys):
    csv_file = write_csv("Name,ID\nJane,1\n")
    code = cli_main([str(csv_file), "--owner", "ra-7", "--dry-run", "--debug"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
