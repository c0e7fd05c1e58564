"""
Order repository backed by Redis.

Layout:
    order:<id>  -> JSON encoded Order (string)
    orders      -> set of every live primary key

Insert and delete WATCH the primary key, test its existence, then queue the
record write and the index mutation in one MULTI/EXEC transaction:

    insert:  WATCH key ; EXISTS key ; MULTI ; SET key value ; SADD orders key ; EXEC
    delete:  WATCH key ; EXISTS key ; MULTI ; DEL key       ; SREM orders key ; EXEC

A failed existence test raises before MULTI, so a rejected insert or delete
writes nothing. A concurrent change to the key aborts EXEC and the whole
attempt is retried by `Redis.transaction`.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import redis
from redis.exceptions import RedisError

from ..core.context import Context
from .errors import AlreadyExists, Cancelled, NotFound, StoreUnavailable
from .models import INDEX_KEY, KEY_PREFIX, Order, decode, encode, key_of

logger = logging.getLogger(__name__)

# SSCAN cursors are unsigned 64-bit integers
MAX_CURSOR = 2**64 - 1


@dataclass
class FindAllPage:
    """Scan request: up to `size` index members from cursor `offset`."""
    size: int = 50
    offset: int = 0


@dataclass
class FindResult:
    """One page of orders plus the cursor for the next call (0 = done)."""
    orders: List[Order] = field(default_factory=list)
    cursor: int = 0


class OrderStore:
    """Repository mapping orders onto Redis keys and an index set."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = KEY_PREFIX,
        index_key: str = INDEX_KEY
    ):
        self.client = client
        self.key_prefix = key_prefix
        self.index_key = index_key

    def key_of(self, order_id: int) -> str:
        return key_of(order_id, self.key_prefix)

    @staticmethod
    def _check(ctx: Optional[Context], operation: str, key: Optional[str] = None) -> None:
        if ctx is not None and ctx.cancelled:
            raise Cancelled(operation, key, ctx.reason())

    # ==================== Mutations ====================

    def insert(self, order: Order, ctx: Optional[Context] = None) -> None:
        """Store a new order; fails with AlreadyExists if the id is taken."""
        data = encode(order)
        key = self.key_of(order.order_id)
        self._check(ctx, "insert", key)

        def write(pipe):
            if pipe.exists(key):
                raise AlreadyExists("insert", key)
            self._check(ctx, "insert", key)
            pipe.multi()
            pipe.set(key, data)
            pipe.sadd(self.index_key, key)

        try:
            self.client.transaction(write, key)
        except RedisError as e:
            raise StoreUnavailable("insert", key, str(e)) from e
        logger.debug(f"Inserted {key}")

    def update(self, order: Order, ctx: Optional[Context] = None) -> None:
        """Replace an existing order in full; never creates one."""
        data = encode(order)
        key = self.key_of(order.order_id)
        self._check(ctx, "update", key)

        try:
            replaced = self.client.set(key, data, xx=True)
        except RedisError as e:
            raise StoreUnavailable("update", key, str(e)) from e

        if not replaced:
            raise NotFound("update", key)
        logger.debug(f"Updated {key}")

    def delete_by_id(self, order_id: int, ctx: Optional[Context] = None) -> None:
        """Remove an order and its index entry; fails with NotFound if absent."""
        key = self.key_of(order_id)
        self._check(ctx, "delete", key)

        def remove(pipe):
            if not pipe.exists(key):
                raise NotFound("delete", key)
            self._check(ctx, "delete", key)
            pipe.multi()
            pipe.delete(key)
            pipe.srem(self.index_key, key)

        try:
            self.client.transaction(remove, key)
        except RedisError as e:
            raise StoreUnavailable("delete", key, str(e)) from e
        logger.debug(f"Deleted {key}")

    # ==================== Queries ====================

    def find_by_id(self, order_id: int, ctx: Optional[Context] = None) -> Order:
        """Load one order; fails with NotFound if absent."""
        key = self.key_of(order_id)
        self._check(ctx, "find", key)

        try:
            value = self.client.get(key)
        except RedisError as e:
            raise StoreUnavailable("find", key, str(e)) from e

        if value is None:
            raise NotFound("find", key)
        return decode(value, key)

    def find_all(self, page: FindAllPage, ctx: Optional[Context] = None) -> FindResult:
        """
        Run one SSCAN step over the index and load the orders it returns.

        The cursor is opaque and store-defined. An empty step does not mean
        the scan is over; only a returned cursor of 0 does. An index entry
        whose record is missing or unreadable raises CorruptRecord.
        """
        if page.size < 1:
            raise ValueError(f"page size must be positive, got {page.size}")
        if not 0 <= page.offset <= MAX_CURSOR:
            raise ValueError(f"cursor must be between 0 and {MAX_CURSOR}, got {page.offset}")
        self._check(ctx, "find_all", self.index_key)

        try:
            cursor, keys = self.client.sscan(
                self.index_key, cursor=page.offset, match="*", count=page.size
            )
        except RedisError as e:
            raise StoreUnavailable("find_all", self.index_key, str(e)) from e

        if not keys:
            return FindResult(orders=[], cursor=int(cursor))

        self._check(ctx, "find_all", self.index_key)
        try:
            values = self.client.mget(keys)
        except RedisError as e:
            raise StoreUnavailable("find_all", self.index_key, str(e)) from e

        orders = [decode(value, key) for key, value in zip(keys, values)]
        return FindResult(orders=orders, cursor=int(cursor))

    def iter_all(self, size: int = 50, ctx: Optional[Context] = None) -> Iterator[Order]:
        """Yield every indexed order, following the cursor until it returns to 0."""
        page = FindAllPage(size=size, offset=0)
        while True:
            result = self.find_all(page, ctx)
            yield from result.orders
            if result.cursor == 0:
                return
            page = FindAllPage(size=size, offset=result.cursor)

    def count(self) -> int:
        """Number of entries in the index set."""
        try:
            return int(self.client.scard(self.index_key))
        except RedisError as e:
            raise StoreUnavailable("count", self.index_key, str(e)) from e
