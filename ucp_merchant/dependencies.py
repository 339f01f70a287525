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

"""FastAPI dependencies for the UCP merchant server.

This module contains dependency injection logic for FastAPI endpoints,
including:
- Header validation (UCP-Agent version negotiation, Request-Id).
- Access to the session store and catalog opened by the app lifespan.
- Service instantiation (CheckoutService).
"""

import re
from typing import Optional

from fastapi import Depends
from fastapi import Header
from fastapi import Request
from pydantic import BaseModel
from ucp_merchant import config
from ucp_merchant.catalog import Catalog
from ucp_merchant.db import SessionStore
from ucp_merchant.exceptions import VersionUnsupportedError
from ucp_merchant.services.checkout_service import CheckoutService


class CommonHeaders(BaseModel):
  """Common headers used in UCP requests."""

  ucp_agent: Optional[str] = None
  request_id: Optional[str] = None


async def common_headers(
    ucp_agent: Optional[str] = Header(None),
    request_id: Optional[str] = Header(None),
) -> CommonHeaders:
  """Extracts and validates common headers."""
  if ucp_agent:
    validate_ucp_agent(ucp_agent)
  return CommonHeaders(ucp_agent=ucp_agent, request_id=request_id)


def validate_ucp_agent(ucp_agent: str) -> None:
  """Validates the UCP-Agent header and negotiates the protocol version.

  Raises:
    VersionUnsupportedError: if the platform requests a newer version than
      this merchant implements.
  """
  server_version = config.get_server_version()
  agent_version = server_version  # Default to server version if not specified

  # We look for 'version=' either at the start or after a semicolon,
  # allowing for whitespace.
  # Matches: version="1.2.3" or version=1.2.3
  match = re.search(
      r"(?:^|;)\s*version=(?:\"([^\"]+)\"|([^;]+))", ucp_agent, re.IGNORECASE
  )
  if match:
    # Group 1 is quoted value, Group 2 is unquoted value
    agent_version = (match.group(1) or match.group(2)).strip()

  # Versions are YYYY-MM-DD dates, so string order is chronological.
  if agent_version > server_version:
    raise VersionUnsupportedError(
        f"Version {agent_version} is not supported. This merchant"
        f" implements version {server_version}."
    )


def get_store(request: Request) -> SessionStore:
  """Dependency provider for the session store."""
  return request.app.state.store


def get_catalog(request: Request) -> Catalog:
  """Dependency provider for the product catalog."""
  return request.app.state.catalog


def get_checkout_service(
    store: SessionStore = Depends(get_store),
    catalog: Catalog = Depends(get_catalog),
) -> CheckoutService:
  """Dependency provider for CheckoutService."""
  return CheckoutService(
      store,
      catalog,
      pricing=config.pricing_config(),
      session_ttl=config.session_ttl(),
  )
