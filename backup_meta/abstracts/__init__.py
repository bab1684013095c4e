##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
The `abstracts` package contains abstract base classes shared across backup_meta.

Modules:
    factory.py: Defines `BaseFactory`, the registry/plugin base used by the store factory.
"""

from backup_meta.abstracts.factory import BaseFactory


__all__ = ["BaseFactory"]
