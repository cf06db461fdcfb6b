import logging

import pytest

from energyindex import cli, exceptions, ingest
from energyindex.cli import setup_logging
from energyindex.config import Settings, get_settings
from energyindex.tree import EnergyIndex


@pytest.fixture(autouse=True)
def quiet(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "setup_logging", lambda settings: None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def store(tmp_path, csv_path, capsys):
    path = tmp_path / "data.bin"
    assert cli.main(["--store", str(path), "import", str(csv_path)]) == 0
    assert capsys.readouterr().out.strip() == "Loaded: 3, invalid: 6"
    return path


def test_import_writes_store(store):
    # three 64-byte records
    assert store.stat().st_size == 3 * 64


def test_sum_and_avg(store, capsys):
    args = ["--store", str(store), "sum", "--start", "2021-02-01", "--end", "2021-02-01T00:30"]
    assert cli.main(args + ["--field", "production"]) == 0
    assert capsys.readouterr().out.strip() == "Result: 350.5 W"

    args[2] = "avg"
    assert cli.main(args + ["--field", "5"]) == 0
    assert capsys.readouterr().out.strip() == "Result: 175.25 W"


def test_search(store, capsys):
    args = [
        "--store", str(store), "search", "--field", "export", "--target", "55",
        "--tolerance", "0.5", "--start", "01.02.2021", "--end", "02.02.2021",
    ]
    assert cli.main(args) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["Found: 55.5 W on 01.02", "Matches: 1"]


def test_compare(store, capsys):
    args = [
        "--store", str(store), "compare",
        "--start1", "2021-02-01T00:00", "--end1", "2021-02-01T00:00",
        "--start2", "2021-02-01T00:15", "--end2", "2021-02-01T00:15",
        "--field", "production",
    ]
    assert cli.main(args) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["Period 1: 100 W", "Period 2: 250.5 W", "Difference: -150.5 W"]


def test_import_replace_starts_empty(store, csv_path, capsys):
    assert cli.main(["--store", str(store), "import", str(csv_path)]) == 0
    # every row is now a duplicate of the stored ones
    assert capsys.readouterr().out.strip() == "Loaded: 0, invalid: 9"
    assert cli.main(["--store", str(store), "import", "--replace", str(csv_path)]) == 0
    assert capsys.readouterr().out.strip() == "Loaded: 3, invalid: 6"


def test_summary_json(store, capsys):
    import json

    assert cli.main(["--store", str(store), "summary"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["meta"]["count"] == 3
    assert payload["totals"]["production"] == 355.5


def test_unknown_field_is_usage_error(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--store", str(tmp_path / "x.bin"), "sum", "--start", "2021-02-01",
                  "--end", "2021-02-02", "--field", "wind"])
    assert exc.value.code == 2


def test_truncated_store_reports_error(tmp_path, capsys):
    path = tmp_path / "data.bin"
    path.write_bytes(b"\0" * 10)
    assert cli.main(["--store", str(path), "summary"]) == 1
    assert capsys.readouterr().err.startswith("error:")


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_error_log_receives_only_rejected_lines(tmp_path, csv_path, restore_root_logging):
    full, errors = tmp_path / "log.txt", tmp_path / "log_error.txt"
    setup_logging(
        Settings(log_level="DEBUG", log_file=str(full), error_log_file=str(errors))
    )
    ingest.load_csv(EnergyIndex(), csv_path)
    for h in logging.getLogger().handlers:
        h.flush()

    error_lines = errors.read_text(encoding="utf-8").splitlines()
    assert len(error_lines) == 6
    assert all("ERR: " in line for line in error_lines)
    full_text = full.read_text(encoding="utf-8")
    assert "OK: 01.02.2021 00:00;1,5;2;3;4;100" in full_text
    assert "Loaded 3, invalid 6" in full_text


def test_unwritable_log_file_raises_config_error(tmp_path):
    with pytest.raises(exceptions.ConfigError):
        setup_logging(Settings(log_file=str(tmp_path / "missing" / "log.txt")))


def test_unwritable_log_file_is_reported(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(cli, "setup_logging", setup_logging)
    monkeypatch.setenv("ENERGYINDEX_ERROR_LOG_FILE", str(tmp_path / "missing" / "err.txt"))
    assert cli.main(["--store", str(tmp_path / "data.bin"), "summary"]) == 1
    assert capsys.readouterr().err.startswith("error: Cannot open log file")
