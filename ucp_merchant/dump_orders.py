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

"""Utility script to dump placed orders.

This script reads the orders from the SQLite session store written by a server
started with --store_db_path and outputs them to standard output in CSV format.

Usage:
  ucp-merchant-dump-orders --store_db_path=...
"""

import asyncio
import csv
import sys
from typing import IO, Iterable

from absl import app as absl_app
from ucp_merchant import config
from ucp_merchant import db
from ucp_merchant.models import Order

FLAGS = config.FLAGS

CSV_HEADER = [
    "order_id",
    "checkout_id",
    "status",
    "items",
    "subtotal",
    "tax",
    "shipping",
    "total",
    "buyer_email",
    "created_at",
]


def write_orders(orders: Iterable[Order], out: IO[str]) -> None:
  """Writes one CSV row per order."""
  writer = csv.writer(out)
  writer.writerow(CSV_HEADER)
  for order in orders:
    writer.writerow([
        order.id,
        order.checkout_id,
        order.status.value,
        sum(li.quantity for li in order.line_items),
        order.totals.subtotal,
        order.totals.tax,
        order.totals.shipping,
        order.totals.total,
        order.buyer.email if order.buyer else "",
        order.created_at.isoformat(),
    ])


async def dump_orders() -> None:
  """Queries the store and prints all orders."""
  if not FLAGS.store_db_path:
    print("Error: --store_db_path is required.")
    sys.exit(1)

  store = db.SqlStore(FLAGS.store_db_path)
  await store.open()
  try:
    orders = await store.list_orders()
  finally:
    await store.close()
  write_orders(sorted(orders, key=lambda o: o.created_at), sys.stdout)


def main(argv):
  """Main entry point for the order dump script."""
  del argv
  asyncio.run(dump_orders())


def run() -> None:
  """Console script entry point."""
  absl_app.run(main)


if __name__ == "__main__":
  run()
