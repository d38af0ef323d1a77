"""
Purpose
-------
Validate `InfraLogger.write_entry` for the STDERR and append-to-file branches.
"""

import pathlib

from pytest import CaptureFixture

from infra.logging.infra_logger import InfraLogger
from tests.test_infra.test_logging.test_infra_logger.infra_logger_testing_utils import (
    TEST_FORMATTED_TEXT,
    init_logger_for_test,
)


def test_write_entry_stderr(capsys: CaptureFixture) -> None:
    """
    One line, newline-terminated, goes to stderr and nothing to stdout.
    """

    logger: InfraLogger = init_logger_for_test()
    logger.write_entry(TEST_FORMATTED_TEXT)
    captured = capsys.readouterr()
    assert captured.err == f"{TEST_FORMATTED_TEXT}\n"
    assert captured.out == ""


def test_write_entry_file_appends(capsys: CaptureFixture, tmp_path: pathlib.Path) -> None:
    """
    Sequential writes append UTF-8 lines to the destination file.

    Parameters
    ----------
    capsys : CaptureFixture
        Confirms nothing reaches stderr.
    tmp_path : pathlib.Path
        Holds the log file.

    Returns
    -------
    None
    """

    log_path: pathlib.Path = tmp_path / "tf_idf.log"
    log_path.write_text("existing\n", encoding="utf-8")
    logger: InfraLogger = init_logger_for_test(log_dest=str(log_path))

    logger.write_entry("A")
    logger.write_entry("Ä")

    assert capsys.readouterr().err == ""
    assert log_path.read_text(encoding="utf-8").replace("\r\n", "\n") == "existing\nA\nÄ\n"
