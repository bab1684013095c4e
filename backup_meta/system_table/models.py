##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
This module houses the records stored in the backup system table and the codecs
that turn them into the byte payloads kept in its cells.

- `BackupInfo`: the descriptor of one backup session (`session:` rows).
- `TableServerTimestamp`: the server -> log timestamp map of one table (`trslm:` rows).
- `encode_long`/`decode_long`: the 8-byte timestamp of one server (`rslogts:` rows).
- `WALItem`: one registered WAL file (`wals:` rows).
"""

import json
import logging
import os
import struct
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from backup_meta.common.enums import BackupPhase, BackupState, BackupType
from backup_meta.exceptions import MalformedRecordError


LOG = logging.getLogger(__name__)

LONG_FORMAT = ">q"
LONG_SIZE = struct.calcsize(LONG_FORMAT)


@dataclass
class BackupInfo:  # pylint: disable=too-many-instance-attributes
    """
    The descriptor of a single backup session.

    Attributes:
        backup_id: The unique id of the session.
        backup_type: Whether the session is a full or an incremental backup.
        backup_root_dir: The backup destination (root) the session writes to.
        tables: The names of the tables backed up by the session.
        state: The state of the session.
        phase: The phase a running session is in.
        start_ts: When the session started, in milliseconds since the epoch.
        complete_ts: When the session ended, in milliseconds since the epoch (0 while running).
        failed_msg: The reason a failed session failed.
        progress: Percent complete.
        additional_data: Any extra data attached to the session.
    """

    backup_id: str
    backup_type: BackupType = BackupType.FULL
    backup_root_dir: str = ""
    tables: List[str] = field(default_factory=list)
    state: BackupState = BackupState.WAITING
    phase: Optional[BackupPhase] = None
    start_ts: int = 0
    complete_ts: int = 0
    failed_msg: Optional[str] = None
    progress: int = 0
    additional_data: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        """
        Convert the session to a JSON-serializable dictionary.

        Returns:
            The session as a dictionary with enums replaced by their values.
        """
        data = asdict(self)
        data["backup_type"] = self.backup_type.value
        data["state"] = self.state.value
        data["phase"] = self.phase.value if self.phase is not None else None
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "BackupInfo":
        """
        Create a session from the output of `to_dict`.

        Keys this class doesn't know about are kept in `additional_data`.

        Args:
            data: The dictionary to load.

        Returns:
            A `BackupInfo` instance.
        """
        data = dict(data)
        additional_data = data.pop("additional_data", None) or {}
        known = {name: data.pop(name) for name in list(data) if name in cls.__dataclass_fields__}
        additional_data.update(data)

        if "backup_type" in known:
            known["backup_type"] = BackupType(known["backup_type"])
        if "state" in known:
            known["state"] = BackupState(known["state"])
        if known.get("phase") is not None:
            known["phase"] = BackupPhase(known["phase"])
        return cls(additional_data=additional_data, **known)

    def to_bytes(self) -> bytes:
        """
        Serialize the session into the payload stored in its `session:` row.

        Returns:
            The UTF-8 encoded JSON form of the session.
        """
        return json.dumps(self.to_dict(), sort_keys=True).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "BackupInfo":
        """
        Deserialize a session from the payload stored in its `session:` row.

        Args:
            data: The stored payload.

        Returns:
            A `BackupInfo` instance.

        Raises:
            MalformedRecordError: If the payload is empty or isn't a valid session.
        """
        if not data:
            raise MalformedRecordError("Backup session payload is empty.")
        try:
            return cls.from_dict(json.loads(data.decode("utf-8")))
        except (UnicodeDecodeError, ValueError, TypeError, AttributeError) as exc:
            raise MalformedRecordError(f"Cannot decode backup session payload: {exc}") from exc

    def sort_key(self):
        """Key used to order sessions by time: start time first, then completion time."""
        return (self.start_ts, self.complete_ts)


def normalize_server_name(server: str) -> str:
    """
    Reduce a server name to its `host:port` form.

    Server names show up either as `host:port` or as `host,port,startcode`.

    Args:
        server: The server name to normalize.

    Returns:
        The `host:port` form of the server name.
    """
    if "," in server:
        parts = server.split(",")
        if len(parts) >= 2:
            return f"{parts[0]}:{parts[1]}"
    return server


class TableServerTimestamp:
    """
    Codec for the per-table map of server name to log timestamp.

    The payload is a JSON object of the form
    `{"table": "<name>", "server_timestamps": [{"host": ..., "port": ..., "timestamp": ...}]}`.
    """

    @staticmethod
    def to_bytes(table: str, server_timestamps: Dict[str, int]) -> bytes:
        """
        Serialize a table's server timestamps.

        Args:
            table: The table the timestamps belong to.
            server_timestamps: A mapping of server name to log timestamp.

        Returns:
            The UTF-8 encoded JSON payload.
        """
        entries = []
        for server, timestamp in server_timestamps.items():
            host, _, port = normalize_server_name(server).rpartition(":")
            if not host:
                host, port = port, ""
            entries.append({"host": host, "port": int(port) if port.isdigit() else port, "timestamp": int(timestamp)})
        return json.dumps({"table": table, "server_timestamps": entries}).encode("utf-8")

    @staticmethod
    def from_bytes(data: bytes) -> Dict[str, int]:
        """
        Deserialize a table's server timestamps.

        Args:
            data: The stored payload.

        Returns:
            A mapping of `host:port` server name to log timestamp.

        Raises:
            MalformedRecordError: If the payload is empty or isn't a valid timestamp map.
        """
        if not data:
            raise MalformedRecordError(
                "Log timestamp map payload is empty; the previous backup did not record its timestamps."
            )
        try:
            decoded = json.loads(data.decode("utf-8"))
            server_timestamps = {}
            for entry in decoded["server_timestamps"]:
                server = f"{entry['host']}:{entry['port']}" if entry["port"] != "" else entry["host"]
                server_timestamps[server] = int(entry["timestamp"])
            return server_timestamps
        except (UnicodeDecodeError, ValueError, TypeError, KeyError) as exc:
            raise MalformedRecordError(f"Cannot decode log timestamp map payload: {exc}") from exc


def encode_long(value: int) -> bytes:
    """
    Encode a timestamp as an 8-byte big-endian signed integer.

    Args:
        value: The timestamp to encode.

    Returns:
        The encoded timestamp.
    """
    return struct.pack(LONG_FORMAT, value)


def decode_long(data: bytes) -> int:
    """
    Decode an 8-byte big-endian signed integer.

    Args:
        data: The stored payload.

    Returns:
        The decoded timestamp.

    Raises:
        MalformedRecordError: If the payload isn't exactly 8 bytes long.
    """
    if data is None or len(data) != LONG_SIZE:
        raise MalformedRecordError(f"Expected an {LONG_SIZE}-byte timestamp, got {data!r}.")
    return struct.unpack(LONG_FORMAT, data)[0]


@dataclass(frozen=True)
class WALItem:
    """
    A WAL file registered in the backup system table.

    Attributes:
        backup_id: The backup session that registered the file.
        wal_file: The full path of the WAL file.
        backup_root: The backup destination the file was registered for.
    """

    backup_id: str
    wal_file: str
    backup_root: str

    def __str__(self) -> str:
        return f"/{self.backup_root}/{self.backup_id}/{self.wal_file}"


def get_unique_wal_file_name_part(wal_file: str) -> str:
    """
    Get the part of a WAL file path that uniquely identifies it.

    Args:
        wal_file: The full path of a WAL file.

    Returns:
        The base name of the file.
    """
    return os.path.basename(wal_file.rstrip("/"))
