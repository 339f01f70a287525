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

"""Integration tests for the UCP merchant server."""

import asyncio
import datetime
from typing import Any, Dict, Optional
import uuid

from absl.testing import absltest
from fastapi.testclient import TestClient
from ucp_merchant import config
from ucp_merchant.server import app

SESSIONS = "/api/shopping/checkout-sessions"


class IntegrationTest(absltest.TestCase):
  """Integration tests for the UCP server application."""

  def setUp(self) -> None:
    """Starts the app; the lifespan provides a fresh in-memory store."""
    super().setUp()
    self.client = self.enter_context(TestClient(app))

  def _get_headers(
      self,
      version: Optional[str] = None,
      request_id: Optional[str] = None,
  ) -> Dict[str, str]:
    """Constructs request headers with optional overrides."""
    agent = 'profile="https://agent.example/profile"'
    if version:
      agent += f'; version="{version}"'
    return {
        "UCP-Agent": agent,
        "request-id": request_id or str(uuid.uuid4()),
    }

  def _create_checkout(
      self,
      items: Optional[list[tuple[str, int]]] = None,
      select_instrument: bool = True,
  ) -> Dict[str, Any]:
    """Creates a checkout session and returns the response body."""
    payload: Dict[str, Any] = {
        "line_items": [
            {"item": {"id": product_id}, "quantity": quantity}
            for product_id, quantity in (items or [("rose-bouquet", 1)])
        ],
        "currency": "USD",
    }
    if select_instrument:
      payload["payment"] = {"selected_instrument_id": "mock-instrument-1"}
    response = self.client.post(
        SESSIONS, json=payload, headers=self._get_headers()
    )
    self.assertEqual(response.status_code, 201, response.text)
    return response.json()

  def _complete(self, checkout_id: str, token: str = "success_token"):
    return self.client.post(
        f"{SESSIONS}/{checkout_id}/complete",
        json={
            "payment_data": {
                "handler_id": "mock-payment-handler",
                "token": token,
            }
        },
        headers=self._get_headers(),
    )

  def test_discovery(self):
    response = self.client.get("/.well-known/ucp")

    self.assertEqual(response.status_code, 200)
    data = response.json()
    self.assertEqual(data["ucp"]["version"], "2026-01-11")
    service = data["ucp"]["services"]["dev.ucp.shopping"]
    self.assertEqual(
        service["rest"]["endpoint"], "http://testserver/api/shopping"
    )
    self.assertIn(
        config.CHECKOUT_CAPABILITY,
        [c["name"] for c in service["capabilities"]],
    )
    self.assertCountEqual(
        [h["id"] for h in data["payment"]["handlers"]],
        ["mock-payment-handler", "card-handler"],
    )

  def test_health(self):
    response = self.client.get("/health")

    self.assertEqual(response.status_code, 200)
    self.assertEqual(
        response.json(),
        {"status": "ok", "protocol": "UCP", "version": "2026-01-11"},
    )

  def test_list_products(self):
    response = self.client.get("/api/shopping/products")

    self.assertEqual(response.status_code, 200)
    products = {p["id"]: p for p in response.json()["products"]}
    self.assertLen(products, 5)
    self.assertEqual(products["rose-bouquet"]["price"], 4999)
    self.assertFalse(products["mixed-wildflowers"]["in_stock"])

  def test_single_item_checkout_happy_path(self):
    checkout = self._create_checkout(
        [("rose-bouquet", 2)], select_instrument=False
    )

    self.assertEqual(checkout["status"], "incomplete")
    self.assertEqual(checkout["totals"]["total"], 10873)
    self.assertEmpty(checkout.get("messages", []))
    self.assertIn("expires_at", checkout)
    self.assertEqual(checkout["ucp"]["version"], "2026-01-11")

    response = self.client.put(
        f"{SESSIONS}/{checkout['id']}",
        json={
            "buyer": {"email": "john.doe@example.com", "name": "John Doe"},
            "payment": {"selected_instrument_id": "mock-instrument-1"},
        },
        headers=self._get_headers(),
    )
    self.assertEqual(response.status_code, 200, response.text)
    self.assertEqual(response.json()["status"], "ready_for_complete")

    response = self._complete(checkout["id"])
    self.assertEqual(response.status_code, 200, response.text)
    completed = response.json()
    self.assertEqual(completed["status"], "completed")
    self.assertEqual(completed["payment"]["status"], "captured")
    self.assertRegex(completed["order"]["id"], r"^ORD-[0-9A-F]{8}$")

    response = self.client.get(
        f"/api/shopping/orders/{completed['order']['id']}",
        headers=self._get_headers(),
    )
    self.assertEqual(response.status_code, 200, response.text)
    order = response.json()
    self.assertEqual(order["checkout_id"], checkout["id"])
    self.assertEqual(order["status"], "pending")
    self.assertEqual(order["totals"]["total"], 10873)
    self.assertEqual(order["buyer"]["email"], "john.doe@example.com")

  def test_get_checkout(self):
    checkout = self._create_checkout()

    response = self.client.get(
        f"{SESSIONS}/{checkout['id']}", headers=self._get_headers()
    )

    self.assertEqual(response.status_code, 200)
    self.assertEqual(response.json(), checkout)

  def test_create_reports_item_errors(self):
    checkout = self._create_checkout(
        [("no-such-flower", 1), ("tulip-arrangement", 1)]
    )

    self.assertLen(checkout["line_items"], 1)
    self.assertEqual(
        checkout["messages"],
        [{
            "type": "error",
            "code": "ITEM_ERROR",
            "message": "Product not found: no-such-flower",
        }],
    )

  def test_create_without_line_items(self):
    response = self.client.post(
        SESSIONS,
        json={"line_items": [], "currency": "USD"},
        headers=self._get_headers(),
    )

    self.assertEqual(response.status_code, 400)
    self.assertEqual(
        response.json(),
        {
            "detail": "line_items is required and cannot be empty",
            "code": "INVALID_REQUEST",
        },
    )

  def test_create_without_currency(self):
    response = self.client.post(
        SESSIONS,
        json={"line_items": [{"item": {"id": "rose-bouquet"}, "quantity": 1}]},
        headers=self._get_headers(),
    )

    self.assertEqual(response.status_code, 400)
    self.assertEqual(response.json()["detail"], "currency is required")

  def test_create_with_zero_quantity(self):
    response = self.client.post(
        SESSIONS,
        json={
            "line_items": [{"item": {"id": "rose-bouquet"}, "quantity": 0}],
            "currency": "USD",
        },
        headers=self._get_headers(),
    )

    self.assertEqual(response.status_code, 400)
    data = response.json()
    self.assertEqual(data["code"], "INVALID_REQUEST")
    self.assertIn("quantity", data["detail"])
    self.assertEqual(
        data["errors"][0]["loc"], ["body", "line_items", "0", "quantity"]
    )

  def test_update_with_malformed_line_item(self):
    checkout = self._create_checkout()

    response = self.client.put(
        f"{SESSIONS}/{checkout['id']}",
        json={"line_items": [{"quantity": 1}]},
        headers=self._get_headers(),
    )

    self.assertEqual(response.status_code, 400)
    self.assertEqual(response.json()["code"], "INVALID_REQUEST")

  def test_unknown_checkout(self):
    response = self.client.get(
        f"{SESSIONS}/does-not-exist", headers=self._get_headers()
    )

    self.assertEqual(response.status_code, 404)
    self.assertEqual(
        response.json(),
        {"detail": "Checkout session not found", "code": "RESOURCE_NOT_FOUND"},
    )

  def test_unknown_order(self):
    response = self.client.get(
        "/api/shopping/orders/ORD-00000000", headers=self._get_headers()
    )

    self.assertEqual(response.status_code, 404)
    self.assertEqual(response.json()["detail"], "Order not found")

  def test_complete_not_ready(self):
    checkout = self._create_checkout(select_instrument=False)

    response = self._complete(checkout["id"])

    self.assertEqual(response.status_code, 400)
    data = response.json()
    self.assertEqual(data["code"], "INVALID_STATE")
    self.assertEqual(data["detail"], "Checkout not ready for completion")
    self.assertEqual(data["current_status"], "incomplete")
    self.assertIn("hint", data)

  def test_complete_without_payment_data(self):
    checkout = self._create_checkout()

    response = self.client.post(
        f"{SESSIONS}/{checkout['id']}/complete", headers=self._get_headers()
    )

    self.assertEqual(response.status_code, 400)
    self.assertEqual(
        response.json()["detail"], "payment_data.handler_id is required"
    )

  def test_complete_declined_payment(self):
    checkout = self._create_checkout()

    response = self._complete(checkout["id"], token="fail_token")

    self.assertEqual(response.status_code, 400)
    data = response.json()
    self.assertEqual(data["status"], "ready_for_complete")
    self.assertEqual(data["payment"]["status"], "failed")
    self.assertEqual(data["messages"][0]["code"], "PAYMENT_FAILED")
    self.assertNotIn("order", data)

  def test_complete_twice(self):
    checkout = self._create_checkout()
    first = self._complete(checkout["id"])
    self.assertEqual(first.status_code, 200)

    second = self._complete(checkout["id"])

    self.assertEqual(second.status_code, 400)
    self.assertEqual(second.json()["detail"], "Checkout already completed")
    self.assertEqual(second.json()["current_status"], "completed")

  def test_update_completed_checkout(self):
    checkout = self._create_checkout()
    self._complete(checkout["id"])

    response = self.client.put(
        f"{SESSIONS}/{checkout['id']}",
        json={"buyer": {"email": "late@example.com"}},
        headers=self._get_headers(),
    )

    self.assertEqual(response.status_code, 400)
    self.assertEqual(
        response.json()["detail"], "Cannot update completed checkout"
    )

  def test_cancel_is_idempotent(self):
    checkout = self._create_checkout()

    first = self.client.post(
        f"{SESSIONS}/{checkout['id']}/cancel", headers=self._get_headers()
    )
    second = self.client.post(
        f"{SESSIONS}/{checkout['id']}/cancel", headers=self._get_headers()
    )

    self.assertEqual(first.status_code, 200)
    self.assertEqual(second.status_code, 200)
    self.assertEqual(second.json()["status"], "canceled")
    self.assertLen(
        [m for m in second.json()["messages"] if m["code"] == "CANCELED"], 1
    )

  def test_cancel_completed_checkout(self):
    checkout = self._create_checkout()
    self._complete(checkout["id"])

    response = self.client.post(
        f"{SESSIONS}/{checkout['id']}/cancel", headers=self._get_headers()
    )

    self.assertEqual(response.status_code, 400)
    self.assertEqual(
        response.json()["detail"], "Cannot cancel completed checkout"
    )

  def test_expired_session_is_canceled_on_read(self):
    checkout = self._create_checkout()
    store = app.state.store
    stored = asyncio.run(store.get_checkout(checkout["id"]))
    stored.expires_at = datetime.datetime.now(
        datetime.timezone.utc
    ) - datetime.timedelta(minutes=1)
    asyncio.run(store.save_checkout(stored))

    response = self.client.get(
        f"{SESSIONS}/{checkout['id']}", headers=self._get_headers()
    )

    self.assertEqual(response.status_code, 200)
    data = response.json()
    self.assertEqual(data["status"], "canceled")
    self.assertEqual(data["messages"][-1]["code"], "EXPIRED")

  def test_supported_agent_version(self):
    response = self.client.get(
        f"{SESSIONS}/does-not-exist",
        headers=self._get_headers(version="2026-01-11"),
    )

    self.assertEqual(response.status_code, 404)

  def test_newer_agent_version_is_rejected(self):
    response = self.client.post(
        SESSIONS,
        json={
            "line_items": [{"item": {"id": "rose-bouquet"}, "quantity": 1}],
            "currency": "USD",
        },
        headers=self._get_headers(version="2099-01-01"),
    )

    self.assertEqual(response.status_code, 400)
    self.assertEqual(response.json()["code"], "VERSION_UNSUPPORTED")


if __name__ == "__main__":
  absltest.main()
