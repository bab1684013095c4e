##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Main entry point into backup_meta's command-line interface.
"""

import logging
import sys
import traceback

from backup_meta.cli.argparse_main import build_main_parser
from backup_meta.log_formatter import setup_logging


LOG = logging.getLogger("backup_meta")


def main():
    """
    Entry point for the backup_meta command-line interface (CLI) operations.

    This function sets up the argument parser, initializes logging, and executes
    the function of the chosen command. Any exception raised by the command is
    logged and turned into an exit status of 1.
    """
    parser = build_main_parser()
    if len(sys.argv) == 1:
        parser.print_help(sys.stdout)
        return 1
    args = parser.parse_args()

    setup_logging(logger=LOG, log_level=args.level.upper(), colors=True)

    try:
        args.func(args)
        # pylint complains that this exception is too broad - being at the literal top of the program stack, it's ok.
    except Exception as excpt:  # pylint: disable=broad-except
        LOG.debug(traceback.format_exc())
        LOG.error(str(excpt))
        sys.exit(1)

    sys.exit()


if __name__ == "__main__":
    main()
