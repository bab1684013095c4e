##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""
Redis implementation of a sorted key-value store.

Redis has no native ordered table, so each table is laid out over three kinds of keys:

- `<table>:descriptor`: the JSON-encoded `TableDescriptor` the table was created with.
- `<table>:rows`: a sorted set holding every row key with score 0. Redis orders equal-score
  members bytewise, so `ZRANGEBYLEX` gives the ascending-key range scans a sorted store needs.
- `<table>:cells:<family>:<row>`: a hash holding the columns of one row in one column group.
  Column groups with a time-to-live get an `EXPIRE` on this hash after each write.

A single-row put is applied in one MULTI/EXEC transaction. A single-row delete and the
unindexing of a row are Lua scripts, so the row index never loses a row that still holds
cells. Multi-row puts are not atomic.

Column groups with a time-to-live expire their hashes on the server, but the row index
does not expire with them. Scanners remove index entries whose hashes are all gone as
they come across them.
"""

import json
import logging
from typing import Dict, List, Optional

from redis import Redis

from backup_meta.exceptions import TableNotFoundError
from backup_meta.store.store_base import Scanner, SortedStore, TableHandle, check_max_versions
from backup_meta.store.store_types import Row, Scan, TableDescriptor


LOG = logging.getLogger(__name__)

DEFAULT_CACHING = 100

# KEYS[1]: row index, KEYS[2]: hash to delete, KEYS[3..]: the row's other hashes. ARGV[1]: row key.
DELETE_ROW_SCRIPT = """
redis.call("DEL", KEYS[2])
for i = 3, #KEYS do
    if redis.call("EXISTS", KEYS[i]) == 1 then
        return 0
    end
end
return redis.call("ZREM", KEYS[1], ARGV[1])
"""

# KEYS[1]: row index, KEYS[2..]: every hash of the row. ARGV[1]: row key.
UNINDEX_ROW_SCRIPT = """
for i = 2, #KEYS do
    if redis.call("EXISTS", KEYS[i]) == 1 then
        return 0
    end
end
return redis.call("ZREM", KEYS[1], ARGV[1])
"""


def descriptor_key(table: str) -> str:
    """
    Get the Redis key holding a table's descriptor.

    Args:
        table: The table name.

    Returns:
        The Redis key.
    """
    return f"{table}:descriptor"


def rows_key(table: str) -> str:
    """
    Get the Redis key of the sorted set indexing a table's rows.

    Args:
        table: The table name.

    Returns:
        The Redis key.
    """
    return f"{table}:rows"


def cells_key(table: str, family: str, row: bytes) -> bytes:
    """
    Get the Redis key of the hash holding one row's columns in one column group.

    Args:
        table: The table name.
        family: The column group.
        row: The row key.

    Returns:
        The Redis key.
    """
    return f"{table}:cells:{family}:".encode("utf-8") + row


class RedisScanner(Scanner):
    """
    Scanner over a Redis-backed table.

    Row keys are fetched from the row index `caching` at a time; each page resumes
    strictly after the last key of the previous page, so rows added or removed
    between pages never cause a row to be returned twice.

    Index entries of rows whose hashes have all expired are removed from the index
    as they are read. A page that turns up no live row doubles the page size for the
    next one (up to `DEFAULT_CACHING`, or `caching` if larger).
    """

    def __init__(
        self,
        client: Redis,
        table: str,
        families: List[str],
        scan: Scan,
        row_families: Optional[List[str]] = None,
    ):
        """
        Initialize the scanner.

        Args:
            client: The Redis client.
            table: The table name.
            families: The column groups whose cells are returned.
            scan: The range to scan.
            row_families: Every column group of the table. Defaults to `families`.
        """
        super().__init__(scan)
        self._client: Redis = client
        self._table: str = table
        self._families: List[str] = families
        self._row_families: List[str] = row_families or families
        self._unindex_row = client.register_script(UNINDEX_ROW_SCRIPT)
        self._page_size: int = scan.caching or DEFAULT_CACHING
        self._max_page_size: int = max(self._page_size, DEFAULT_CACHING)
        self._lower: bytes = b"[" + scan.start_row if scan.start_row else b"-"
        self._upper: bytes = b"(" + scan.stop_row if scan.stop_row else b"+"
        self._page: List[Row] = []
        self._exhausted: bool = False

    def _unindex_if_empty(self, key: bytes):
        keys = [rows_key(self._table)] + [cells_key(self._table, family, key) for family in self._row_families]
        if self._unindex_row(keys=keys, args=[key]):
            LOG.debug(f"Removed expired row {key!r} from the index of '{self._table}'.")

    def _fetch_page(self):
        keys = self._client.zrangebylex(rows_key(self._table), self._lower, self._upper, start=0, num=self._page_size)
        if len(keys) < self._page_size:
            self._exhausted = True
        if not keys:
            return
        self._lower = b"(" + keys[-1]

        pipe = self._client.pipeline(transaction=False)
        for key in keys:
            for family in self._families:
                pipe.hgetall(cells_key(self._table, family, key))
        results = pipe.execute()

        per_row = len(self._families)
        for index, key in enumerate(keys):
            cells = {}
            for family_cells in results[index * per_row : (index + 1) * per_row]:
                cells.update(family_cells)
            if cells:
                self._page.append(Row(key=key, cells=dict(sorted(cells.items()))))
            else:
                self._unindex_if_empty(key)

        if not self._page:
            self._page_size = min(self._page_size * 2, self._max_page_size)

    def _next_row(self) -> Optional[Row]:
        while not self._page and not self._exhausted:
            self._fetch_page()
        if self._page:
            return self._page.pop(0)
        return None

    def _release(self):
        self._page = []
        self._exhausted = True


class RedisTableHandle(TableHandle):
    """A handle on one table of a `RedisStore`."""

    def __init__(self, client: Redis, descriptor: TableDescriptor):
        super().__init__(descriptor.name)
        self.client: Redis = client
        self.descriptor: TableDescriptor = descriptor
        self._delete_row = client.register_script(DELETE_ROW_SCRIPT)

    def _family(self, family: str):
        family_descriptor = self.descriptor.get_family(family)
        if family_descriptor is None:
            raise ValueError(f"Table '{self.name}' has no column family '{family}'.")
        return family_descriptor

    def put(self, row: bytes, family: str, columns: Dict[bytes, bytes]):
        family_descriptor = self._family(family)
        if not columns:
            return
        key = cells_key(self.name, family, row)
        pipe = self.client.pipeline(transaction=True)
        pipe.hset(key, mapping=columns)
        pipe.zadd(rows_key(self.name), {row: 0})
        if family_descriptor.ttl:
            pipe.expire(key, family_descriptor.ttl)
        pipe.execute()

    def get(self, row: bytes, family: str, max_versions: int = 1) -> Dict[bytes, bytes]:
        check_max_versions(max_versions)
        self._family(family)
        cells = self.client.hgetall(cells_key(self.name, family, row))
        return dict(sorted(cells.items()))

    def delete(self, row: bytes, family: str):
        self._family(family)
        others = [cells_key(self.name, other.name, row) for other in self.descriptor.families if other.name != family]
        keys = [rows_key(self.name), cells_key(self.name, family, row)] + others
        self._delete_row(keys=keys, args=[row])

    def get_scanner(self, scan: Scan) -> Scanner:
        check_max_versions(scan.max_versions)
        if scan.family is not None:
            self._family(scan.family)
            families = [scan.family]
        else:
            families = [family.name for family in self.descriptor.families]
        row_families = [family.name for family in self.descriptor.families]
        return RedisScanner(self.client, self.name, families, scan, row_families=row_families)


class RedisStore(SortedStore):
    """
    A sorted key-value store backed by a Redis server.

    Attributes:
        store_name (str): The name of the store (e.g. "redis").
        client (Redis): The Redis client used for every operation.
    """

    def __init__(self, url: str = "redis://localhost:6379/0", store_name: str = "redis", **kwargs):
        """
        Initialize the `RedisStore` instance and connect to Redis.

        Args:
            url: The Redis connection URL.
            store_name: The name of the store (e.g. "redis" or "rediss").
            kwargs: Extra keyword arguments for `Redis.from_url`; unknown store settings are ignored.
        """
        super().__init__(store_name)
        redis_config = {"url": url, "decode_responses": False}
        if "ssl_cert_reqs" in kwargs:
            redis_config["ssl_cert_reqs"] = kwargs["ssl_cert_reqs"]
        self.client: Redis = Redis.from_url(**redis_config)

    def get_version(self) -> str:
        client_info = self.client.info()
        return client_info.get("redis_version", "N/A")

    def get_table_descriptor(self, name: str) -> Optional[TableDescriptor]:
        raw = self.client.get(descriptor_key(name))
        if raw is None:
            return None
        return TableDescriptor.from_dict(json.loads(raw))

    def get_table(self, name: str) -> TableHandle:
        descriptor = self.get_table_descriptor(name)
        if descriptor is None:
            raise TableNotFoundError(f"Table '{name}' does not exist.")
        return RedisTableHandle(self.client, descriptor)

    def table_exists(self, name: str) -> bool:
        return bool(self.client.exists(descriptor_key(name)))

    def create_table(self, descriptor: TableDescriptor):
        created = self.client.set(descriptor_key(descriptor.name), json.dumps(descriptor.to_dict()), nx=True)
        if created:
            LOG.debug(f"Created Redis table '{descriptor.name}'.")
        else:
            LOG.debug(f"Table '{descriptor.name}' already exists.")

    def delete_table(self, name: str):
        keys = list(self.client.scan_iter(match=f"{name}:*"))
        if keys:
            self.client.delete(*keys)
        LOG.debug(f"Deleted Redis table '{name}' ({len(keys)} keys).")

    def _close(self):
        self.client.close()
