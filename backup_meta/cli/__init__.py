##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
The `cli` package contains the command-line interface of backup_meta.

Modules:
    argparse_main.py: Builds the top-level argument parser.
    utils.py: Helpers shared by several commands.

Subpackages:
    commands: One module per CLI command.
"""
