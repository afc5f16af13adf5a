"""
Test: status-file command line.
"""
import json

import pytest

from conftest import member_row
from statusfile.cli import main
from statusfile.grading_store import load_store, save_store
from statusfile.row_codec import MEMBER_TITLES
from statusfile.table_io import load_rows


@pytest.fixture
def store_file(store, tmp_path):
    path = tmp_path / "store.json"
    save_store(store, path)
    return path


def run(store_file, *args, assignment=10):
    return main(["--store", str(store_file), "--assignment", str(assignment), *args])


class TestExport:
    def test_export_csv(self, store_file, tmp_path, capsys):
        output = tmp_path / "out.csv"
        assert run(store_file, "export", "--format", "csv", "--output", str(output)) == 0
        assert load_rows(output)[0] == MEMBER_TITLES
        assert "✓ Saved 3 members" in capsys.readouterr().out

    def test_bundle(self, store_file, tmp_path):
        output = tmp_path / "bundle"
        assert run(store_file, "bundle", "--output", str(output)) == 0
        assert (output / "checksums.json").is_file()
        assert (output / "status.xlsx").is_file()


class TestImport:
    def test_import_saves_store(self, store_file, write_csv):
        path = write_csv([MEMBER_TITLES, member_row(update=1, usr_id=44, status="ok")])
        assert run(store_file, "import", str(path)) == 0
        assert load_store(store_file).get_member_status(10, 44).status == "passed"

    def test_dry_run_keeps_store(self, store_file, write_csv, capsys):
        path = write_csv([MEMBER_TITLES, member_row(update=1, usr_id=44, status="ok")])
        assert run(store_file, "import", "--dry-run", str(path)) == 0
        assert "carol" in capsys.readouterr().out
        assert load_store(store_file).get_member_status(10, 44) is None

    def test_invalid_file_exit_code(self, store_file, write_csv, capsys):
        path = write_csv([MEMBER_TITLES, member_row(update=1, usr_id=44, status="maybe")])
        assert run(store_file, "import", str(path)) == 1
        assert "No status updates were applied" in capsys.readouterr().out


class TestErrors:
    def test_missing_store(self, tmp_path):
        assert run(tmp_path / "nope.json", "export") == 2

    def test_unknown_assignment(self, store_file):
        assert run(store_file, "export", assignment=99) == 2

    def test_bad_config(self, store_file, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"csv": {"delimiter": "::"}}), encoding="utf-8")
        assert run(store_file, "--config", str(config), "export") == 2
