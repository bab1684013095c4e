##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Queries over the backup session history stored in `session:` rows.

`HistoryMixin` is mixed into `BackupSystemTable`; it only relies on the table's
`_open_table` method. The filter factories at the bottom of this module build the
predicates accepted by `get_backup_history_filtered`.
"""

import logging
from typing import Callable, Dict, Iterable, List

from backup_meta.common.enums import BackupState, BackupType
from backup_meta.store.store_base import TableHandle
from backup_meta.store.store_types import Scan
from backup_meta.system_table.models import BackupInfo
from backup_meta.system_table.row_keys import BACKUP_INFO_PREFIX, SESSIONS_FAMILY, prefix_range_bound


LOG = logging.getLogger(__name__)

BackupFilter = Callable[[BackupInfo], bool]


def create_scan_for_backup_history(caching: int = None) -> Scan:
    """
    Build the scan that reads every `session:` row.

    Args:
        caching: How many rows the store should fetch per round trip.

    Returns:
        A scan over the session column group of the whole session family.
    """
    start, stop = prefix_range_bound(BACKUP_INFO_PREFIX)
    return Scan(start_row=start, stop_row=stop, family=SESSIONS_FAMILY, max_versions=1, caching=caching)


def sort_history_desc(history: Iterable[BackupInfo]) -> List[BackupInfo]:
    """
    Order sessions from the most recent to the oldest.

    Args:
        history: The sessions to sort.

    Returns:
        A new list sorted by start time, then completion time, descending.
    """
    return sorted(history, key=BackupInfo.sort_key, reverse=True)


class HistoryMixin:
    """
    Answers questions about past backup sessions.

    Methods:
        get_backup_infos: Read every session in a given state, in row key order.
        get_backup_history: Read every session, most recent first.
        get_history: Read the `n` most recent sessions.
        get_backup_history_filtered: Read up to `n` recent sessions matching every filter.
        get_backup_history_for_root: Read the sessions that wrote to a backup root.
        get_backup_history_for_table: Read the sessions that backed up a table.
        get_backup_history_for_table_set: Group the sessions of a root by the tables they backed up.
        has_backup_sessions: Check whether any session is recorded.
    """

    def _open_table(self) -> TableHandle:
        raise NotImplementedError("Classes using `HistoryMixin` must implement an `_open_table` method.")

    def get_backup_infos(self, state: BackupState = BackupState.ANY) -> List[BackupInfo]:
        """
        Read every recorded session in a given state.

        Args:
            state: The state to keep; `BackupState.ANY` keeps every session.

        Returns:
            The matching sessions in ascending backup id order.

        Raises:
            MalformedRecordError: If a session row can't be decoded.
        """
        LOG.debug(f"Reading backup sessions with state {state.value}.")
        infos = []
        with self._open_table() as table, table.get_scanner(create_scan_for_backup_history()) as scanner:
            for row in scanner:
                info = BackupInfo.from_bytes(row.first_value())
                if state != BackupState.ANY and info.state != state:
                    continue
                infos.append(info)
        return infos

    def get_backup_history(self, only_completed: bool = False) -> List[BackupInfo]:
        """
        Read the session history, most recent first.

        Args:
            only_completed: If True, only sessions that completed successfully are returned.

        Returns:
            The sessions sorted by time, descending.
        """
        state = BackupState.COMPLETE if only_completed else BackupState.ANY
        return sort_history_desc(self.get_backup_infos(state))

    def get_history(self, n: int) -> List[BackupInfo]:
        """
        Read the `n` most recent sessions.

        Args:
            n: The maximum number of sessions to return.

        Returns:
            At most `n` sessions, most recent first.
        """
        return self.get_backup_history()[: max(n, 0)]

    def get_backup_history_filtered(self, n: int, *filters: BackupFilter) -> List[BackupInfo]:
        """
        Read up to `n` recent sessions that pass every filter.

        Filters are applied in order and evaluation of a session stops at the first
        filter it fails. The history walk stops as soon as `n` sessions have been collected.

        Args:
            n: The maximum number of sessions to return.
            filters: Predicates taking a `BackupInfo` and returning True to keep it.

        Returns:
            At most `n` matching sessions, most recent first.
        """
        if not filters:
            return self.get_history(n)

        result = []
        for info in self.get_backup_history():
            if len(result) >= n:
                break
            if all(backup_filter(info) for backup_filter in filters):
                result.append(info)
        return result

    def get_backup_history_for_root(self, backup_root: str) -> List[BackupInfo]:
        """
        Read the sessions that wrote to a backup root.

        Args:
            backup_root: The backup destination.

        Returns:
            The matching sessions, most recent first.
        """
        return [info for info in self.get_backup_history() if info.backup_root_dir == backup_root]

    def get_backup_history_for_table(self, table: str) -> List[BackupInfo]:
        """
        Read the sessions that backed up a table.

        Args:
            table: The table name.

        Returns:
            The matching sessions, most recent first.
        """
        return [info for info in self.get_backup_history() if table in info.tables]

    def get_backup_history_for_table_set(self, tables: Iterable[str], backup_root: str) -> Dict[str, List[BackupInfo]]:
        """
        Group the sessions of a backup root by the requested tables they backed up.

        Args:
            tables: The table names of interest.
            backup_root: The backup destination.

        Returns:
            A mapping of table name to the sessions that backed it up, most recent first.
            Tables that were never backed up to `backup_root` are absent.
        """
        wanted = set(tables)
        table_history: Dict[str, List[BackupInfo]] = {}
        for info in self.get_backup_history_for_root(backup_root):
            for table in info.tables:
                if table in wanted:
                    table_history.setdefault(table, []).append(info)
        return table_history

    def has_backup_sessions(self) -> bool:
        """
        Check whether at least one session is recorded.

        Returns:
            True as soon as one `session:` row is seen.
        """
        with self._open_table() as table, table.get_scanner(create_scan_for_backup_history(caching=1)) as scanner:
            return scanner.next() is not None


def state_filter(state: BackupState) -> BackupFilter:
    """
    Build a filter keeping sessions in a given state.

    Args:
        state: The state to keep; `BackupState.ANY` keeps every session.

    Returns:
        A predicate for `get_backup_history_filtered`.
    """
    return lambda info: state == BackupState.ANY or info.state == state


def root_filter(backup_root: str) -> BackupFilter:
    """Build a filter keeping sessions that wrote to `backup_root`."""
    return lambda info: info.backup_root_dir == backup_root


def table_filter(table: str) -> BackupFilter:
    """Build a filter keeping sessions that backed up `table`."""
    return lambda info: table in info.tables


def type_filter(backup_type: BackupType) -> BackupFilter:
    """Build a filter keeping sessions of the given type."""
    return lambda info: info.backup_type == backup_type
