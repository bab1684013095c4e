##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
backup_meta: bookkeeping storage for backup orchestration.

This package persists the metadata that backup orchestration needs (session status,
log-roll checkpoints, incremental table sets, registered WAL files, and named backup sets)
in a single sorted key-value table.
"""

import os
import sys


__version__ = "0.4.0"
VERSION = __version__
PATH_TO_PROJ = os.path.join(os.path.dirname(__file__), "")

CLI_MOD = "backup_meta.main"


def is_using_cli():
    """
    Checks whether the backup_meta module is currently using the CLI.
    """
    return CLI_MOD in sys.modules
