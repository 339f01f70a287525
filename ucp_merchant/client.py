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

"""Happy Path Client Script for the UCP demo merchant.

This script walks the checkout flow from a platform's point of view:
0. Discovery: Querying the merchant to see what they support.
1. Listing the products on offer.
2. Creating a new checkout session with two items.
3. Adding buyer details and selecting a payment instrument.
4. Completing the checkout with a mock payment token.

Usage:
  ucp-merchant-client --server_url=http://localhost:3000
"""

import argparse
import logging
import sys
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

SUCCESS_TOKEN = "success_token"
FAIL_TOKEN = "fail_token"


class ClientError(Exception):
  """Raised when the merchant rejects a request."""


def format_amount(cents: int, currency: str) -> str:
  return f"{cents / 100:,.2f} {currency}"


def _check(response: httpx.Response, step: str) -> Dict[str, Any]:
  if response.status_code not in (200, 201):
    raise ClientError(
        f"{step} failed with HTTP {response.status_code}: {response.text}"
    )
  return response.json()


def discover(client: httpx.Client) -> str:
  """Fetches the discovery profile and returns the shopping endpoint."""
  profile = _check(client.get("/.well-known/ucp"), "Discovery")
  logger.info("UCP version: %s", profile["ucp"]["version"])

  service = profile["ucp"]["services"].get("dev.ucp.shopping", {})
  for capability in service.get("capabilities", []):
    logger.info(" - capability %s", capability["name"])

  handlers = (profile.get("payment") or {}).get("handlers", [])
  logger.info("Merchant supports %d payment handlers:", len(handlers))
  for h in handlers:
    logger.info(" - %s (%s)", h["name"], h["id"])

  return (service.get("rest") or {}).get("endpoint", "/api/shopping")


def run_checkout(
    client: httpx.Client,
    token: str = SUCCESS_TOKEN,
) -> Optional[Dict[str, Any]]:
  """Runs the full checkout flow and returns the final session."""
  logger.info("STEP 0: Discovery - Asking merchant what they support...")
  endpoint = discover(client)

  logger.info("STEP 1: Listing products...")
  products = _check(client.get(f"{endpoint}/products"), "List products")
  for p in products["products"]:
    stock = "in stock" if p["in_stock"] else "OUT OF STOCK"
    logger.info(
        " - %s: %s [%s]",
        p["id"],
        format_amount(p["price"], p["currency"]),
        stock,
    )

  logger.info("STEP 2: Creating a new Checkout Session...")
  create_payload = {
      "line_items": [
          {"item": {"id": "rose-bouquet"}, "quantity": 2},
          {"item": {"id": "tulip-arrangement"}, "quantity": 1},
      ],
      "currency": "USD",
      "payment": {
          "instruments": [{
              "id": "inst-1",
              "handler_id": "mock-payment-handler",
              "type": "token",
              "display_name": "Test Card",
          }],
      },
  }
  checkout = _check(
      client.post(f"{endpoint}/checkout-sessions", json=create_payload),
      "Create checkout",
  )
  checkout_id = checkout["id"]
  currency = checkout["currency"]
  logger.info("Created checkout %s (%s)", checkout_id, checkout["status"])
  for li in checkout["line_items"]:
    logger.info(
        " - %s x %d = %s",
        li["item"]["name"],
        li["quantity"],
        format_amount(li["total_price"], currency),
    )
  logger.info("Total: %s", format_amount(checkout["totals"]["total"], currency))

  logger.info("STEP 3: Adding buyer and selecting payment...")
  update_payload = {
      "buyer": {
          "email": "john.doe@example.com",
          "name": "John Doe",
          "phone": "+1-555-123-4567",
      },
      "payment": {
          "selected_instrument_id": checkout["payment"]["instruments"][0]["id"],
      },
  }
  checkout = _check(
      client.put(
          f"{endpoint}/checkout-sessions/{checkout_id}", json=update_payload
      ),
      "Update checkout",
  )
  logger.info("Checkout status: %s", checkout["status"])

  logger.info("STEP 4: Completing checkout...")
  complete_payload = {
      "payment_data": {"handler_id": "mock-payment-handler", "token": token}
  }
  response = client.post(
      f"{endpoint}/checkout-sessions/{checkout_id}/complete",
      json=complete_payload,
  )
  if response.status_code == 400 and "payment" in response.json():
    checkout = response.json()
    logger.error(
        "Payment declined: %s",
        "; ".join(m["message"] for m in checkout.get("messages", [])),
    )
    return checkout

  checkout = _check(response, "Complete checkout")
  logger.info(
      "Order %s placed, payment %s, charged %s",
      checkout["order"]["id"],
      checkout["payment"]["status"],
      format_amount(checkout["totals"]["total"], currency),
  )
  return checkout


def main() -> None:
  parser = argparse.ArgumentParser()
  parser.add_argument(
      "--server_url",
      default="http://localhost:3000",
      help="Base URL of the UCP merchant server",
  )
  parser.add_argument(
      "--fail_payment",
      action="store_true",
      help="Submit the mock decline token instead of the success token.",
  )
  args = parser.parse_args()

  logging.basicConfig(
      level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
  )

  token = FAIL_TOKEN if args.fail_payment else SUCCESS_TOKEN
  try:
    with httpx.Client(base_url=args.server_url) as client:
      run_checkout(client, token=token)
  except (ClientError, httpx.HTTPError) as e:
    logger.error("Demo failed: %s", e)
    sys.exit(1)


if __name__ == "__main__":
  main()
