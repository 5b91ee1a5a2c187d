import logging
from datetime import datetime, timezone

import pytest

from riakclient.log import FileLog, format_log_line


def test_format_with_fixed_time():
    when = datetime(2014, 3, 1, 12, 30, 45, tzinfo=timezone.utc)
    assert (
        format_log_line(logging.CRITICAL, "boom", when)
        == "2014-03-01 12:30:45 UTC CRITICAL boom\n"
    )


def test_format_accepts_level_names():
    when = datetime(2014, 3, 1, 12, 30, 45, tzinfo=timezone.utc)
    line = format_log_line("INFO", "hello", when)
    assert line.endswith(" INFO hello\n")


def test_naive_time_is_local():
    line = format_log_line(logging.INFO, "x", datetime(2014, 3, 1, 12, 30, 45))
    assert line.startswith("2014-03-01 12:30:45 ")
    assert line.endswith(" INFO x\n")


def test_long_message_is_cut_without_newline():
    line = format_log_line(logging.INFO, "a" * 5000)
    assert len(line) == 2047
    assert not line.endswith("\n")


def test_message_that_fits_keeps_newline():
    line = format_log_line(logging.INFO, "a" * 1000)
    assert line.endswith("a\n")


def test_file_log_writes_lines(tmp_path, capsys):
    path = tmp_path / "riak.log"
    with FileLog(str(path)) as log:
        assert log.is_open
        written = log.log(logging.INFO, "first")
    assert not log.is_open
    assert path.read_text(encoding="utf-8") == written
    assert written.endswith("INFO first\n")
    assert f"Log file {path} initialized." in capsys.readouterr().out


def test_critical_lines_go_to_stderr(tmp_path, capsys):
    with FileLog(str(tmp_path / "riak.log")) as log:
        log.log(logging.INFO, "quiet")
        line = log.log(logging.CRITICAL, "loud")
    err = capsys.readouterr().err
    assert line in err
    assert "quiet" not in err


def test_log_before_open_writes_nothing(tmp_path):
    path = tmp_path / "riak.log"
    log = FileLog(str(path))
    assert log.log(logging.INFO, "lost") is None
    assert not path.exists()


def test_open_truncates_existing_file(tmp_path):
    path = tmp_path / "riak.log"
    path.write_text("old contents\n", encoding="utf-8")
    with FileLog(str(path)):
        pass
    assert path.read_text(encoding="utf-8") == ""


def test_open_failure_raises(tmp_path):
    log = FileLog(str(tmp_path / "missing" / "riak.log"))
    with pytest.raises(OSError):
        log.open()
    assert not log.is_open