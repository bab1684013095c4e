##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
The `sqlite` package contains the SQLite-backed sorted store.
"""

from backup_meta.store.sqlite.sqlite_store import SQLiteStore


__all__ = ["SQLiteStore"]
