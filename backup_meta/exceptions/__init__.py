##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Module of all backup_meta-specific exception types.
"""

__all__ = (
    "BackupMetaError",
    "MalformedRecordError",
    "SystemTableUnavailableError",
    "UnsupportedOperationError",
    "InvalidRowKeyComponentError",
    "StoreNotSupportedError",
    "TableNotFoundError",
)


class BackupMetaError(Exception):
    """
    Base class for every error raised by backup_meta itself.

    Errors raised by a store client (e.g. `redis.exceptions.ConnectionError` or
    `sqlite3.OperationalError`) are never wrapped in this type; they reach the caller unchanged.
    """


class MalformedRecordError(BackupMetaError):
    """
    Exception to signal that a row exists in the backup system table but its payload
    could not be decoded. This usually points to an earlier partial write.
    """


class SystemTableUnavailableError(BackupMetaError):
    """
    Exception to signal that the backup system table did not become available
    within the configured timeout.
    """


class UnsupportedOperationError(BackupMetaError):
    """
    Exception to signal that an operation is not supported by the object it was called on.
    """


class InvalidRowKeyComponentError(BackupMetaError, ValueError):
    """
    Exception to signal that a root, table, server, or set name cannot be used
    as a row key component.
    """


class StoreNotSupportedError(BackupMetaError):
    """
    Exception to signal that the requested store type is not supported.
    """


class TableNotFoundError(BackupMetaError):
    """
    Exception to signal that a store was asked to operate on a table that was never created.
    """
