##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
The `common` package contains enumerations shared across backup_meta.

Modules:
    enums.py: Backup session states, types and phases, plus CLI return codes.
"""
