import json
import subprocess
import sys
from pathlib import Path

import pytest
from thread_dump_parser.driver import parse_thread_dumps

CLI_PATH = Path(__file__).parent.parent / "parse-thread-dump.py"


def load_cli():
    sys.path.insert(0, str(CLI_PATH.parent))
    from importlib import import_module
    return import_module("parse-thread-dump")


@pytest.fixture
def dump_file(tmp_path, simple_thread_dump):
    file = tmp_path / "threads.log"
    file.write_text(simple_thread_dump)
    return str(file)


@pytest.fixture
def noisy_dump_file(tmp_path, two_thread_dumps):
    file = tmp_path / "noisy.log"
    file.write_text(two_thread_dumps)
    return str(file)


@pytest.fixture
def invalid_file(tmp_path):
    file = tmp_path / "invalid.log"
    file.write_text("This is not a thread dump\nJust random text\n")
    return str(file)


def test_cli_clean_dump(dump_file):
    result = subprocess.run([sys.executable, str(CLI_PATH), dump_file], capture_output=True)

    assert result.returncode == 0
    assert b"1 thread dump, 5 threads" in result.stdout
    assert b"Exit code: 0 (CLEAN)" in result.stdout


def test_cli_degraded_dump(noisy_dump_file):
    result = subprocess.run([sys.executable, str(CLI_PATH), noisy_dump_file, "--format", "md"],
                            capture_output=True)

    assert result.returncode == 1
    assert b"## Diagnostics" in result.stdout
    # diagnostics are also logged
    assert b"WARNING" in result.stderr


def test_cli_json_from_stdin(simple_thread_dump):
    result = subprocess.run([sys.executable, str(CLI_PATH), "-", "--format", "json", "--utc"],
                            input=simple_thread_dump.encode("utf-8"), capture_output=True)

    assert result.returncode == 0
    payload = json.loads(result.stdout)
    assert payload["dumps"][0]["timestamp"] == 1471110130000
    assert payload["dumps"][0]["thread_count"] == 5


def test_cli_rejects_invalid(invalid_file):
    result = subprocess.run([sys.executable, str(CLI_PATH), invalid_file], capture_output=True)

    assert result.returncode == 2
    assert b"Invalid format" in result.stderr


def test_cli_missing_file(tmp_path):
    result = subprocess.run([sys.executable, str(CLI_PATH), str(tmp_path / "missing.log")],
                            capture_output=True)

    assert result.returncode == 2
    assert b"file not found" in result.stderr


def test_cli_fatal_timestamp(tmp_path):
    file = tmp_path / "bad.log"
    file.write_text("2016-19-13 17:42:10\nFull thread dump\n\n")
    result = subprocess.run([sys.executable, str(CLI_PATH), str(file)], capture_output=True)

    assert result.returncode == 2
    assert b"mismatch between thread dump timestamp pattern and format" in result.stderr


# === Exit code tests ===

def test_exit_code_clean(simple_thread_dump):
    cli = load_cli()
    assert cli.compute_exit_code(parse_thread_dumps(simple_thread_dump)) == cli.EXIT_CLEAN


def test_exit_code_degraded(two_thread_dumps):
    cli = load_cli()
    assert cli.compute_exit_code(parse_thread_dumps(two_thread_dumps)) == cli.EXIT_DEGRADED


def test_exit_code_no_dumps():
    cli = load_cli()
    assert cli.compute_exit_code(parse_thread_dumps("just noise\n")) == cli.EXIT_NO_DUMPS
