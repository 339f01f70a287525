#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Persistence layer for checkout sessions and orders.

The checkout service only depends on the `SessionStore` contract: get and save
for sessions and orders, plus a per-key lock that serializes read-modify-write
cycles on one session. Two implementations are provided:

- `InMemoryStore`: volatile process-local maps (the default).
- `SqlStore`: SQLAlchemy with SQLite (via aiosqlite), storing each session and
  order as a JSON document keyed by id. WAL mode is enabled so that a dump tool
  can read while the server writes.

Concurrent writers to the same id are serialized by the lock but are not
version-checked: the last write wins.
"""

import abc
import asyncio
import contextlib
import logging
from typing import AsyncIterator, Dict, List, Optional

from sqlalchemy import Column
from sqlalchemy import JSON
from sqlalchemy import select
from sqlalchemy import String
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker
from ucp_merchant.models import Checkout
from ucp_merchant.models import Order

logger = logging.getLogger(__name__)

TransactionBase = declarative_base()


class _KeyLock:
  """A lock plus the number of tasks holding or waiting on it."""

  def __init__(self) -> None:
    self.lock = asyncio.Lock()
    self.holders = 0


class SessionStore(abc.ABC):
  """Keyed storage for checkout sessions and orders."""

  def __init__(self) -> None:
    self._locks: Dict[str, _KeyLock] = {}

  @contextlib.asynccontextmanager
  async def lock(self, key: str) -> AsyncIterator[None]:
    """Serializes mutations of the given session id.

    Entries only live while some task holds or awaits them, so lookups of
    unknown ids leave nothing behind.
    """
    entry = self._locks.get(key)
    if entry is None:
      entry = self._locks[key] = _KeyLock()
    entry.holders += 1
    try:
      async with entry.lock:
        yield
    finally:
      entry.holders -= 1
      if not entry.holders:
        del self._locks[key]

  async def open(self) -> None:
    """Acquires any resources the store needs."""

  async def close(self) -> None:
    """Releases resources acquired by `open`."""

  @abc.abstractmethod
  async def get_checkout(self, checkout_id: str) -> Optional[Checkout]:
    """Retrieves a checkout session by ID."""

  @abc.abstractmethod
  async def save_checkout(self, checkout: Checkout) -> None:
    """Inserts or replaces a checkout session."""

  @abc.abstractmethod
  async def get_order(self, order_id: str) -> Optional[Order]:
    """Retrieves an order by ID."""

  @abc.abstractmethod
  async def save_order(self, order: Order) -> None:
    """Persists a new order.

    Orders are immutable once placed: saving an id that already exists logs a
    warning and keeps the stored order.
    """


class InMemoryStore(SessionStore):
  """Volatile store backed by dictionaries.

  Copies are stored and returned so that callers never share mutable state
  with the store.
  """

  def __init__(self) -> None:
    super().__init__()
    self._checkouts: Dict[str, Checkout] = {}
    self._orders: Dict[str, Order] = {}

  async def get_checkout(self, checkout_id: str) -> Optional[Checkout]:
    checkout = self._checkouts.get(checkout_id)
    return checkout.model_copy(deep=True) if checkout else None

  async def save_checkout(self, checkout: Checkout) -> None:
    self._checkouts[checkout.id] = checkout.model_copy(deep=True)

  async def get_order(self, order_id: str) -> Optional[Order]:
    order = self._orders.get(order_id)
    return order.model_copy(deep=True) if order else None

  async def save_order(self, order: Order) -> None:
    if order.id in self._orders:
      logger.warning("Order %s already exists; not overwriting", order.id)
      return
    self._orders[order.id] = order.model_copy(deep=True)


class CheckoutRecord(TransactionBase):
  __tablename__ = "checkouts"

  id = Column(String, primary_key=True)
  status = Column(String)
  # SQLAlchemy JSON type handles serialization automatically
  data = Column(JSON)


class OrderRecord(TransactionBase):
  __tablename__ = "orders"

  id = Column(String, primary_key=True)
  checkout_id = Column(String, index=True)
  data = Column(JSON)


class SqlStore(SessionStore):
  """SQLite-backed store using an async SQLAlchemy engine."""

  def __init__(self, db_path: str) -> None:
    super().__init__()
    self.db_path = db_path
    self.engine: Optional[AsyncEngine] = None
    self.session_factory: Optional[sessionmaker] = None

  async def open(self) -> None:
    """Initializes the database engine and creates tables."""
    url = f"sqlite+aiosqlite:///{self.db_path}"
    self.engine = create_async_engine(url, echo=False)

    # Enable WAL mode
    async with self.engine.connect() as conn:
      await conn.execute(text("PRAGMA journal_mode=WAL"))

    self.session_factory = sessionmaker(
        self.engine, expire_on_commit=False, class_=AsyncSession
    )

    async with self.engine.begin() as conn:
      await conn.run_sync(TransactionBase.metadata.create_all)
    logger.info("Opened session store at %s", self.db_path)

  async def close(self) -> None:
    if self.engine:
      await self.engine.dispose()
      self.engine = None

  async def get_checkout(self, checkout_id: str) -> Optional[Checkout]:
    async with self.session_factory() as session:
      record = await session.get(CheckoutRecord, checkout_id)
      if record:
        return Checkout.model_validate(record.data)
      return None

  async def save_checkout(self, checkout: Checkout) -> None:
    data = checkout.model_dump(mode="json")
    async with self.session_factory() as session:
      existing = await session.get(CheckoutRecord, checkout.id)
      if existing:
        existing.status = checkout.status.value
        existing.data = data
      else:
        session.add(
            CheckoutRecord(
                id=checkout.id, status=checkout.status.value, data=data
            )
        )
      await session.commit()

  async def get_order(self, order_id: str) -> Optional[Order]:
    async with self.session_factory() as session:
      record = await session.get(OrderRecord, order_id)
      if record:
        return Order.model_validate(record.data)
      return None

  async def save_order(self, order: Order) -> None:
    async with self.session_factory() as session:
      if await session.get(OrderRecord, order.id):
        logger.warning("Order %s already exists; not overwriting", order.id)
        return
      session.add(
          OrderRecord(
              id=order.id,
              checkout_id=order.checkout_id,
              data=order.model_dump(mode="json"),
          )
      )
      await session.commit()

  async def list_orders(self) -> List[Order]:
    """Returns every stored order."""
    async with self.session_factory() as session:
      result = await session.execute(select(OrderRecord))
      return [
          Order.model_validate(record.data) for record in result.scalars()
      ]


def create_store(db_path: Optional[str] = None) -> SessionStore:
  """Returns a SQL store when a DB path is configured, else an in-memory one."""
  if db_path:
    return SqlStore(db_path)
  return InMemoryStore()
