##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Value types exchanged with a sorted key-value store.

These dataclasses describe the requests and results that flow between the backup
system table and whichever store implementation backs it: row mutations, range scans,
scanned rows, and the descriptor used to provision a table.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from backup_meta.utils import get_yaml_var


@dataclass
class ColumnFamilyDescriptor:
    """
    Describes one column group of a table.

    Attributes:
        name: The name of the column group (e.g. "session" or "meta").
        max_versions: How many versions of a cell the store retains. Only 1 is supported.
        ttl: Seconds a row in this column group lives after its last write, or None to keep it forever.
    """

    name: str
    max_versions: int = 1
    ttl: Optional[int] = None

    def to_dict(self) -> Dict:
        """
        Convert the descriptor to a dictionary that can be persisted by a store.

        Returns:
            The descriptor as a dictionary.
        """
        return {"name": self.name, "max_versions": self.max_versions, "ttl": self.ttl}

    @classmethod
    def from_dict(cls, data: Dict) -> "ColumnFamilyDescriptor":
        """
        Rebuild a descriptor from the output of `to_dict`.

        Args:
            data: The dictionary to load.

        Returns:
            A `ColumnFamilyDescriptor` instance.
        """
        return cls(
            name=data["name"],
            max_versions=get_yaml_var(data, "max_versions", 1),
            ttl=get_yaml_var(data, "ttl", None),
        )


@dataclass
class TableDescriptor:
    """
    Describes a table and the column groups it holds.

    Attributes:
        name: The name of the table.
        families: The column groups of the table.
    """

    name: str
    families: List[ColumnFamilyDescriptor] = field(default_factory=list)

    def get_family(self, name: str) -> Optional[ColumnFamilyDescriptor]:
        """
        Look up a column group by name.

        Args:
            name: The name of the column group.

        Returns:
            The column group descriptor, or None if the table has no such group.
        """
        for family in self.families:
            if family.name == name:
                return family
        return None

    def to_dict(self) -> Dict:
        """
        Convert the descriptor to a dictionary that can be persisted by a store.

        Returns:
            The descriptor as a dictionary.
        """
        return {"name": self.name, "families": [family.to_dict() for family in self.families]}

    @classmethod
    def from_dict(cls, data: Dict) -> "TableDescriptor":
        """
        Rebuild a descriptor from the output of `to_dict`.

        Args:
            data: The dictionary to load.

        Returns:
            A `TableDescriptor` instance.
        """
        return cls(name=data["name"], families=[ColumnFamilyDescriptor.from_dict(f) for f in data.get("families", [])])


@dataclass
class RowMutation:
    """
    A single-row write: every column in `columns` is stored under `row` in `family`.

    Attributes:
        row: The row key.
        family: The column group to write to.
        columns: A mapping of column qualifier to value.
    """

    row: bytes
    family: str
    columns: Dict[bytes, bytes]


@dataclass
class Scan:
    """
    A range read over the rows of a table.

    Attributes:
        start_row: The first row key to return (inclusive).
        stop_row: The row key to stop at (exclusive). An empty value means "to the end of the table".
        family: The only column group to return.
        max_versions: How many versions of each cell to return.
        caching: How many rows the store should fetch per round trip, or None for the store default.
    """

    start_row: bytes = b""
    stop_row: bytes = b""
    family: Optional[str] = None
    max_versions: int = 1
    caching: Optional[int] = None

    def contains(self, row: bytes) -> bool:
        """
        Check whether a row key falls inside this scan's range.

        Args:
            row: The row key to check.

        Returns:
            True if `start_row <= row < stop_row` (with an empty `stop_row` being unbounded).
        """
        if row < self.start_row:
            return False
        return not self.stop_row or row < self.stop_row


@dataclass
class Row:
    """
    One row returned by a get or a scan.

    Attributes:
        key: The row key.
        cells: A mapping of column qualifier to value, ordered by qualifier.
    """

    key: bytes
    cells: Dict[bytes, bytes] = field(default_factory=dict)

    def value(self, qualifier: bytes) -> Optional[bytes]:
        """
        Get the value stored in a single column of this row.

        Args:
            qualifier: The column qualifier.

        Returns:
            The value, or None if the row has no such column.
        """
        return self.cells.get(qualifier)

    def first_value(self) -> Optional[bytes]:
        """
        Get the value of the first column of this row.

        Returns:
            The first value, or None if the row has no columns.
        """
        for value in self.cells.values():
            return value
        return None

    def is_empty(self) -> bool:
        """
        Check whether this row holds no columns.

        Returns:
            True if the row holds no columns.
        """
        return not self.cells
