##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Tests for the `main.py` module.
"""

import logging

import pytest
from pytest_mock import MockerFixture

from backup_meta import main as main_module


@pytest.fixture
def no_logging_setup(mocker: MockerFixture):
    """
    Keep `main` from attaching handlers to the package logger during tests.

    Args:
        mocker: PyTest mocker fixture.

    Returns:
        The mocked `setup_logging` function.
    """
    return mocker.patch("backup_meta.main.setup_logging")


def test_no_arguments_prints_help(mocker: MockerFixture, capsys: pytest.CaptureFixture):
    """
    Test that running without arguments prints the help text.

    Args:
        mocker: PyTest mocker fixture.
        capsys: PyTest capsys fixture.
    """
    mocker.patch("sys.argv", ["backup-meta"])
    assert main_module.main() == 1
    assert "usage: backup-meta" in capsys.readouterr().out


def test_successful_command_exits_cleanly(mocker: MockerFixture, no_logging_setup, capsys: pytest.CaptureFixture):
    """
    Test that a command that succeeds exits with status 0 after configuring logging.

    Args:
        mocker: PyTest mocker fixture.
        no_logging_setup: The mocked `setup_logging` function.
        capsys: PyTest capsys fixture.
    """
    mocker.patch("sys.argv", ["backup-meta", "--local", "-lvl", "debug", "set", "list"])
    with pytest.raises(SystemExit) as excinfo:
        main_module.main()
    assert not excinfo.value.code
    no_logging_setup.assert_called_once_with(logger=main_module.LOG, log_level="DEBUG", colors=True)


def test_failing_command_exits_with_error(
    mocker: MockerFixture, no_logging_setup, caplog: pytest.LogCaptureFixture
):
    """
    Test that an exception raised by a command is logged and turned into exit status 1.

    Args:
        mocker: PyTest mocker fixture.
        no_logging_setup: The mocked `setup_logging` function.
        caplog: PyTest log capture fixture.
    """
    mocker.patch("sys.argv", ["backup-meta", "--local", "set", "add", "s1", "bad,name"])
    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as excinfo:
            main_module.main()
    assert excinfo.value.code == 1
    assert "separates backup set members" in caplog.text
