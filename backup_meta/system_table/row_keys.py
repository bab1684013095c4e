##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Row-key schema of the backup system table.

Seven kinds of record share one physical table. Each kind owns a literal key prefix, so
all of its rows form one contiguous block of the table's sorted keyspace:

| Prefix            | Key shape                         | Column group |
|-------------------|-----------------------------------|--------------|
| `session:`        | prefix + backup id                | session      |
| `startcode:`      | prefix + root                     | meta         |
| `incrbackupset:`  | prefix + root                     | meta         |
| `trslm:`          | prefix + root + DELIM + table     | meta         |
| `rslogts:`        | prefix + root + DELIM + server    | meta         |
| `wals:`           | prefix + WAL file name            | meta         |
| `backupset:`      | prefix + set name                 | meta         |

Any change to a prefix, to `DELIM`, or to a column qualifier below is a schema migration.
"""

from typing import Tuple, Union

from backup_meta.exceptions import InvalidRowKeyComponentError


BACKUP_INFO_PREFIX = "session:"
START_CODE_PREFIX = "startcode:"
INCR_BACKUP_SET_PREFIX = "incrbackupset:"
TABLE_RS_LOG_MAP_PREFIX = "trslm:"
RS_LOG_TS_PREFIX = "rslogts:"
WALS_PREFIX = "wals:"
SET_KEY_PREFIX = "backupset:"

DELIM = "\x00"

SESSIONS_FAMILY = "session"
META_FAMILY = "meta"

# Column qualifiers
Q_CONTEXT = b"context"
Q_START_CODE = b"startcode"
Q_LOG_ROLL_MAP = b"log-roll-map"
Q_RS_LOG_TS = b"rs-log-ts"
Q_BACKUP_ID = b"backupId"
Q_FILE = b"file"
Q_ROOT = b"root"
Q_TABLES = b"tables"

EMPTY_VALUE = b""
ENCODING = "utf-8"


def encode(prefix: str, *parts: str) -> bytes:
    """
    Build a row key by concatenating a prefix and its parts.

    No separator is inserted between parts; callers that need one pass `DELIM` as a part.

    Args:
        prefix: The family prefix (e.g. `START_CODE_PREFIX`).
        parts: The remaining key components, in order.

    Returns:
        The UTF-8 encoded row key.
    """
    return "".join((prefix,) + parts).encode(ENCODING)


def decode_suffix(key: bytes) -> str:
    """
    Recover the component stored after the last `DELIM` of a row key.

    If the key holds no `DELIM` the whole key is returned, which is only meaningful
    for well-formed root-scoped keys.

    Args:
        key: A row key returned by a scan.

    Returns:
        The last component of the key (a table or server name).
    """
    text = key.decode(ENCODING)
    return text[text.rfind(DELIM) + 1 :]


def prefix_range_bound(prefix: Union[str, bytes]) -> Tuple[bytes, bytes]:
    """
    Compute the scan range holding every key that starts with `prefix`.

    The stop row is the prefix with its last byte incremented. A last byte of 0xFF wraps
    around to 0x00, giving a wrong range; every prefix used here is printable ASCII
    so this never happens in practice.

    Args:
        prefix: The key prefix to bound, as text or as raw bytes.

    Returns:
        A `(start, stop)` tuple where `start` is inclusive and `stop` is exclusive.
    """
    start = prefix.encode(ENCODING) if isinstance(prefix, str) else bytes(prefix)
    stop = bytearray(start)
    stop[-1] = (stop[-1] + 1) & 0xFF
    return start, bytes(stop)


def validate_component(component: str, kind: str = "key component") -> str:
    """
    Make sure a name can be embedded in a row key.

    Args:
        component: The root, table, server, or set name to check.
        kind: What the component is, for the error message.

    Returns:
        The component unchanged.

    Raises:
        InvalidRowKeyComponentError: If the component is empty, not a string, or contains `DELIM`.
    """
    if not isinstance(component, str) or not component:
        raise InvalidRowKeyComponentError(f"The {kind} must be a non-empty string, got {component!r}.")
    if DELIM in component:
        raise InvalidRowKeyComponentError(f"The {kind} {component!r} contains the reserved row key delimiter.")
    return component


def compose(prefix: str, *components: str) -> bytes:
    """
    Build a validated row key of the form `prefix + c1 + DELIM + c2 ...`.

    Args:
        prefix: The family prefix.
        components: The names making up the key, e.g. a root then a table name.

    Returns:
        The UTF-8 encoded row key.

    Raises:
        InvalidRowKeyComponentError: If any component is empty or contains `DELIM`.
    """
    parts = []
    for index, component in enumerate(components):
        if index:
            parts.append(DELIM)
        parts.append(validate_component(component))
    return encode(prefix, *parts)


def scoped_range_bound(prefix: str, scope: str) -> Tuple[bytes, bytes]:
    """
    Compute the scan range holding every `prefix + scope + DELIM + ...` key.

    Bounding on the delimiter keeps a scan for root "/r" from returning the rows of root "/r2".

    Args:
        prefix: The family prefix.
        scope: The root the scan is restricted to.

    Returns:
        A `(start, stop)` tuple where `start` is inclusive and `stop` is exclusive.

    Raises:
        InvalidRowKeyComponentError: If `scope` is empty or contains `DELIM`.
    """
    return prefix_range_bound(prefix + validate_component(scope, "root") + DELIM)


def strip_prefix(key: bytes, prefix: str) -> str:
    """
    Remove the family prefix from a scanned row key.

    Args:
        key: A row key returned by a scan.
        prefix: The family prefix the key was built with.

    Returns:
        The remainder of the key (a backup id or set name).
    """
    text = key.decode(ENCODING)
    if text.startswith(prefix):
        return text[len(prefix) :]
    return text
