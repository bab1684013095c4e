##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""This module provides enumerations for backup sessions and CLI return codes."""
from enum import Enum, IntEnum


__all__ = ("ReturnCode", "BackupState", "BackupType", "BackupPhase")


class ReturnCode(IntEnum):
    """
    Enum for backup_meta return codes.

    Attributes:
        OK (int): Indicates a successful operation. Numeric value: 0.
        ERROR (int): Indicates a general error occurred. Numeric value: 1.
    """

    OK: int = 0
    ERROR: int = 1


class BackupState(Enum):
    """
    Enum for the state of a backup session.

    `ANY` is never stored; it is only used as a wildcard when filtering sessions.

    Attributes:
        WAITING (str): The session has been requested but has not started.
        RUNNING (str): The session is in progress.
        COMPLETE (str): The session finished successfully.
        FAILED (str): The session finished with an error.
        CANCELLED (str): The session was cancelled before it finished.
        ANY (str): Matches every state.
    """

    WAITING = "WAITING"
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    ANY = "ANY"


class BackupType(Enum):
    """
    Enum for the kind of backup a session performs.

    Attributes:
        FULL (str): A full copy of every table in the session.
        INCREMENTAL (str): Only the WAL files written since the previous backup.
    """

    FULL = "FULL"
    INCREMENTAL = "INCREMENTAL"


class BackupPhase(Enum):
    """Enum for the phase a running backup session is in."""

    REQUEST = "REQUEST"
    SNAPSHOT = "SNAPSHOT"
    PREPARE_INCREMENTAL = "PREPARE_INCREMENTAL"
    SNAPSHOTCOPY = "SNAPSHOTCOPY"
    INCREMENTAL_COPY = "INCREMENTAL_COPY"
    STORE_MANIFEST = "STORE_MANIFEST"
