##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Utility functions shared by the backup_meta CLI commands.
"""

import logging
from argparse import Namespace
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from backup_meta.config.configfile import initialize_config
from backup_meta.store.store_factory import open_store
from backup_meta.system_table import BackupSystemTable


LOG = logging.getLogger(__name__)


@contextmanager
def open_system_table(args: Namespace) -> Iterator[BackupSystemTable]:
    """
    Open the backup system table described by the CLI arguments.

    The configuration is loaded from `args.config` (or the default locations), the
    configured store is opened, and both the table and the store are closed on exit.

    Args:
        args: The parsed CLI arguments. Uses `config` and `local`.

    Yields:
        An open `BackupSystemTable`.
    """
    config = initialize_config(path=getattr(args, "config", None), local_mode=getattr(args, "local", False))
    store = open_store(config)
    try:
        with BackupSystemTable(store, config) as system_table:
            yield system_table
    finally:
        store.close()


def format_timestamp(millis: int) -> str:
    """
    Render a millisecond epoch timestamp for display.

    Args:
        millis: Milliseconds since the epoch. 0 means "not set".

    Returns:
        An ISO-like local time string, or "-" when unset.
    """
    if not millis:
        return "-"
    return datetime.fromtimestamp(millis / 1000).strftime("%Y-%m-%d %H:%M:%S")
