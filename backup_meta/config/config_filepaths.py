##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
This module stores constants representing file paths that will be needed for
backup_meta's configuration.
"""

import os


APP_FILENAME: str = "app.yaml"
USER_HOME: str = os.path.expanduser("~")
BACKUP_META_HOME: str = os.path.join(USER_HOME, ".backup_meta")
CONFIG_PATH_FILE: str = os.path.join(BACKUP_META_HOME, "config_path.txt")
DEFAULT_SQLITE_PATH: str = os.path.join(BACKUP_META_HOME, "backup_meta.db")
