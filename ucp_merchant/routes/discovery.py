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

"""Discovery routes for the UCP server."""

import json

from fastapi import APIRouter
from fastapi import Request
from ucp_merchant import config
from ucp_merchant.models import UcpDiscoveryProfile

router = APIRouter()


@router.get(
    "/.well-known/ucp",
    response_model=UcpDiscoveryProfile,
    response_model_exclude_none=True,
    summary="Get Merchant Profile",
)
async def get_merchant_profile(request: Request):
  """Returns the merchant profile, capabilities and payment handlers."""
  # Read template and perform simple substitution
  with open(config.DISCOVERY_PROFILE_PATH, "r", encoding="utf-8") as f:
    template = f.read()

  profile_json = template.replace(
      "{{ENDPOINT}}", str(request.base_url).rstrip("/")
  )

  return UcpDiscoveryProfile(**json.loads(profile_json))


@router.get("/health", summary="Health Check")
async def health() -> dict[str, str]:
  return {
      "status": "ok",
      "protocol": "UCP",
      "version": config.get_server_version(),
  }
