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

"""Shared configuration and startup logic for the UCP merchant server."""

import contextlib
import datetime
import json
import logging
import pathlib
from typing import Any

from absl import flags
from fastapi import FastAPI
from ucp_merchant import catalog
from ucp_merchant import db
from ucp_merchant.services.pricing import PricingConfig

FLAGS = flags.FLAGS

logger = logging.getLogger(__name__)

DATA_DIR = pathlib.Path(__file__).parent / "data"
DISCOVERY_PROFILE_PATH = DATA_DIR / "discovery_profile.json"
PRODUCTS_PATH = DATA_DIR / "products.json"

CHECKOUT_CAPABILITY = "dev.ucp.shopping.checkout"

_SERVER_VERSION_CACHE = None


def get_server_version() -> str:
  """Reads and caches the server version from the discovery profile."""
  global _SERVER_VERSION_CACHE
  if _SERVER_VERSION_CACHE:
    return _SERVER_VERSION_CACHE

  with open(DISCOVERY_PROFILE_PATH, "r", encoding="utf-8") as f:
    data = json.load(f)
    _SERVER_VERSION_CACHE = data["ucp"]["version"]
    return _SERVER_VERSION_CACHE


# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_integer("port", 3000, "Port to run the server on")
  flags.DEFINE_string(
      "store_db_path",
      None,
      "Path to a SQLite DB for sessions and orders. Sessions are kept in"
      " memory when unset.",
  )
  flags.DEFINE_float("tax_rate", 0.0875, "Flat tax rate applied to subtotal")
  flags.DEFINE_integer(
      "free_shipping_threshold",
      5000,
      "Subtotal in cents at or above which shipping is free",
  )
  flags.DEFINE_integer("shipping_fee", 599, "Flat shipping fee in cents")
  flags.DEFINE_integer(
      "session_ttl_hours", 6, "Hours until an untouched session expires"
  )
except flags.DuplicateFlagError:
  pass


def get_flag(name: str) -> Any:
  """Returns a flag value, falling back to its default before parsing.

  The server may be embedded (for example by a test client) without
  absl having parsed argv.
  """
  if FLAGS.is_parsed():
    return getattr(FLAGS, name)
  return FLAGS[name].default


def pricing_config() -> PricingConfig:
  return PricingConfig(
      tax_rate=get_flag("tax_rate"),
      free_shipping_threshold=get_flag("free_shipping_threshold"),
      shipping_fee=get_flag("shipping_fee"),
  )


def session_ttl() -> datetime.timedelta:
  return datetime.timedelta(hours=get_flag("session_ttl_hours"))


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
  """Opens the session store and loads the catalog for the app's lifetime."""
  store = db.create_store(get_flag("store_db_path"))
  await store.open()
  app.state.store = store
  app.state.catalog = catalog.Catalog.from_json(PRODUCTS_PATH)
  logger.info(
      "Loaded %d products, session store: %s",
      len(app.state.catalog.list_products()),
      type(store).__name__,
  )
  yield
  await store.close()
