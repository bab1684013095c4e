##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
The `memory` package contains the in-process sorted store used in local mode and tests.
"""

from backup_meta.store.memory.memory_store import MemoryStore


__all__ = ["MemoryStore"]
