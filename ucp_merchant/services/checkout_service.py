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

"""Checkout service for managing the lifecycle of checkout sessions.

This module provides the `CheckoutService` class, which encapsulates the
business logic for creating, retrieving, updating, completing and canceling
checkout sessions. The merchant is authoritative for prices, totals and status:
platforms only send product ids, quantities, buyer details and a payment
selection.

Key responsibilities include:
- Resolving requested products against the catalog and computing totals.
- Deriving the session status after every change, with an escalation hook.
- Lazily expiring sessions that have outlived their TTL.
- Simulating payment settlement and turning completed sessions into orders.

Every operation holds the store's lock for the session id for its whole
read-modify-write cycle.
"""

import datetime
import logging
from typing import Callable, List, Optional, Sequence
import uuid

from ucp_merchant import config
from ucp_merchant.catalog import Catalog
from ucp_merchant.db import SessionStore
from ucp_merchant.enums import CheckoutStatus
from ucp_merchant.enums import MessageType
from ucp_merchant.enums import OrderStatus
from ucp_merchant.enums import PaymentStatus
from ucp_merchant.exceptions import InvalidStateError
from ucp_merchant.exceptions import NotFoundError
from ucp_merchant.exceptions import PaymentDeclinedError
from ucp_merchant.exceptions import ValidationError
from ucp_merchant.models import Capability
from ucp_merchant.models import Checkout
from ucp_merchant.models import CheckoutCreateRequest
from ucp_merchant.models import CheckoutUpdateRequest
from ucp_merchant.models import CompleteCheckoutRequest
from ucp_merchant.models import Link
from ucp_merchant.models import Message
from ucp_merchant.models import Order
from ucp_merchant.models import OrderConfirmation
from ucp_merchant.models import PaymentDataFields
from ucp_merchant.models import PaymentInstrument
from ucp_merchant.models import PaymentRequest
from ucp_merchant.models import PaymentResponse
from ucp_merchant.models import Product
from ucp_merchant.models import UcpMetadata
from ucp_merchant.services.line_items import resolve_line_items
from ucp_merchant.services.pricing import calculate_totals
from ucp_merchant.services.pricing import DEFAULT_PRICING
from ucp_merchant.services.pricing import PricingConfig
from ucp_merchant.services.status import derive_status
from ucp_merchant.services.status import is_terminal

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = datetime.timedelta(hours=6)

# Settlement token that the mock payment handler always declines.
FAIL_TOKEN = "fail_token"

NOT_READY_HINT = (
    "Ensure all required fields are set (line_items, payment selection)"
)

DEFAULT_INSTRUMENTS = (
    PaymentInstrument(
        id="mock-instrument-1",
        handler_id="mock-payment-handler",
        type="token",
        display_name="Test Payment",
    ),
)

LEGAL_LINKS = (
    Link(
        rel="terms",
        href="https://example.com/terms",
        title="Terms of Service",
    ),
    Link(
        rel="privacy",
        href="https://example.com/privacy",
        title="Privacy Policy",
    ),
    Link(
        rel="refund",
        href="https://example.com/refund",
        title="Refund Policy",
    ),
)


def _utcnow() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


def _item_error_messages(errors: Sequence[str]) -> List[Message]:
  return [
      Message(type=MessageType.ERROR, code="ITEM_ERROR", message=error)
      for error in errors
  ]


class CheckoutService:
  """Service for managing checkout sessions and orders."""

  def __init__(
      self,
      store: SessionStore,
      catalog: Catalog,
      pricing: PricingConfig = DEFAULT_PRICING,
      session_ttl: datetime.timedelta = DEFAULT_SESSION_TTL,
      clock: Callable[[], datetime.datetime] = _utcnow,
  ):
    self.store = store
    self.catalog = catalog
    self.pricing = pricing
    self.session_ttl = session_ttl
    self.clock = clock

  async def create_checkout(
      self,
      checkout_req: CheckoutCreateRequest,
  ) -> Checkout:
    """Creates a new checkout session.

    Items that cannot be resolved are left out and reported as ITEM_ERROR
    messages; the session is created regardless.

    Raises:
      ValidationError: if no line items or no currency were supplied.
    """
    if not checkout_req.line_items:
      raise ValidationError("line_items is required and cannot be empty")
    if not checkout_req.currency:
      raise ValidationError("currency is required")

    items, errors = resolve_line_items(
        self.catalog, checkout_req.line_items, checkout_req.currency
    )

    payment_req = checkout_req.payment or PaymentRequest()
    if payment_req.instruments is None:
      instruments = [i.model_copy() for i in DEFAULT_INSTRUMENTS]
    else:
      instruments = payment_req.instruments

    checkout = Checkout(
        ucp=self._ucp_metadata(),
        id=str(uuid.uuid4()),
        currency=checkout_req.currency,
        line_items=items,
        totals=calculate_totals(items, self.pricing),
        payment=PaymentResponse(
            selected_instrument_id=payment_req.selected_instrument_id,
            instruments=instruments,
            status=PaymentStatus.PENDING,
        ),
        links=[link.model_copy() for link in LEGAL_LINKS],
        buyer=checkout_req.buyer,
        messages=_item_error_messages(errors),
        expires_at=self._next_expiry(),
    )
    self._refresh_status(checkout)

    async with self.store.lock(checkout.id):
      await self.store.save_checkout(checkout)

    logger.info(
        "Created checkout session %s with %d line items (%s)",
        checkout.id,
        len(items),
        checkout.status.value,
    )
    return checkout

  async def get_checkout(self, checkout_id: str) -> Checkout:
    """Retrieves a checkout session, expiring it first if its TTL passed."""
    async with self.store.lock(checkout_id):
      return await self._get_and_validate_checkout(checkout_id)

  async def update_checkout(
      self,
      checkout_id: str,
      checkout_req: CheckoutUpdateRequest,
  ) -> Checkout:
    """Updates a checkout session.

    Each supplied field group replaces the session's value; omitted groups are
    left untouched. Payment fields merge individually. Every update extends
    the session's expiry.

    Raises:
      NotFoundError: if the session does not exist.
      InvalidStateError: if the session is completed or canceled.
    """
    logger.info("Updating checkout session %s", checkout_id)

    async with self.store.lock(checkout_id):
      checkout = await self._get_and_validate_checkout(checkout_id)
      if is_terminal(checkout.status):
        raise InvalidStateError(
            f"Cannot update {checkout.status.value} checkout",
            details={"current_status": checkout.status.value},
        )

      if checkout_req.line_items is not None:
        items, errors = resolve_line_items(
            self.catalog, checkout_req.line_items, checkout.currency
        )
        checkout.line_items = items
        checkout.totals = calculate_totals(items, self.pricing)
        if errors:
          checkout.messages = _item_error_messages(errors)

      if checkout_req.payment is not None:
        self._merge_payment(checkout.payment, checkout_req.payment)

      if checkout_req.buyer is not None:
        checkout.buyer = checkout_req.buyer

      self._refresh_status(checkout)
      checkout.expires_at = self._next_expiry()

      await self.store.save_checkout(checkout)
      return checkout

  async def complete_checkout(
      self,
      checkout_id: str,
      complete_req: CompleteCheckoutRequest,
  ) -> Checkout:
    """Completes a checkout session and places the order.

    A declined payment is not raised to the caller: the session reverts to
    ready_for_complete with a PAYMENT_FAILED message and is returned with
    payment status `failed`. Any other failure while settling or placing the
    order also reverts the session to ready_for_complete before propagating.

    Raises:
      NotFoundError: if the session does not exist.
      InvalidStateError: if the session is not ready for completion.
      ValidationError: if the payment data has no handler id.
    """
    logger.info("Completing checkout session %s", checkout_id)

    async with self.store.lock(checkout_id):
      checkout = await self._get_and_validate_checkout(checkout_id)
      self._ensure_ready(checkout)

      payment_data = complete_req.payment_data
      if not payment_data.handler_id:
        raise ValidationError("payment_data.handler_id is required")

      # Persist the in-flight state before settlement.
      checkout.status = CheckoutStatus.COMPLETE_IN_PROGRESS
      await self.store.save_checkout(checkout)

      try:
        self._settle_payment(checkout, payment_data)
        order = self._create_order(checkout)
        await self.store.save_order(order)
      except PaymentDeclinedError as e:
        logger.warning(
            "Payment declined for checkout %s via %s",
            checkout_id,
            payment_data.handler_id,
        )
        checkout.status = CheckoutStatus.READY_FOR_COMPLETE
        checkout.payment.status = PaymentStatus.FAILED
        checkout.messages = [
            Message(type=MessageType.ERROR, code=e.code, message=e.message)
        ]
        await self.store.save_checkout(checkout)
        return checkout
      except Exception:
        logger.exception("Failed to place order for checkout %s", checkout_id)
        checkout.status = CheckoutStatus.READY_FOR_COMPLETE
        await self.store.save_checkout(checkout)
        raise

      checkout.status = CheckoutStatus.COMPLETED
      checkout.payment.status = PaymentStatus.CAPTURED
      checkout.order = OrderConfirmation(
          id=order.id, created_at=order.created_at
      )
      await self.store.save_checkout(checkout)

    logger.info("Placed order %s for checkout %s", order.id, checkout_id)
    return checkout

  async def cancel_checkout(self, checkout_id: str) -> Checkout:
    """Cancels a checkout session.

    Canceling an already canceled session returns it unchanged.

    Raises:
      NotFoundError: if the session does not exist.
      InvalidStateError: if the session is completed.
    """
    logger.info("Canceling checkout session %s", checkout_id)

    async with self.store.lock(checkout_id):
      checkout = await self._get_and_validate_checkout(checkout_id)
      if checkout.status == CheckoutStatus.COMPLETED:
        raise InvalidStateError(
            "Cannot cancel completed checkout",
            details={"current_status": checkout.status.value},
        )
      if checkout.status == CheckoutStatus.CANCELED:
        return checkout

      checkout.status = CheckoutStatus.CANCELED
      checkout.continue_url = None
      checkout.messages.append(
          Message(
              type=MessageType.INFO,
              code="CANCELED",
              message="Checkout was canceled",
          )
      )
      await self.store.save_checkout(checkout)
      return checkout

  async def get_order(self, order_id: str) -> Order:
    """Retrieves an order."""
    order = await self.store.get_order(order_id)
    if not order:
      raise NotFoundError("Order not found")
    return order

  def list_products(self) -> List[Product]:
    return self.catalog.list_products()

  def escalation_url(self, checkout: Checkout) -> Optional[str]:
    """Returns where the buyer must go to resolve an escalation, if anywhere.

    Merchants that need out-of-band buyer action (age verification, manual
    review) override this. While it returns a URL the session is held in
    requires_escalation with that URL as its continue_url.
    """
    del checkout  # Unused.
    return None

  async def _get_and_validate_checkout(self, checkout_id: str) -> Checkout:
    """Retrieves a checkout session and validates its existence."""
    checkout = await self.store.get_checkout(checkout_id)
    if not checkout:
      raise NotFoundError("Checkout session not found")
    await self._expire_if_stale(checkout)
    return checkout

  async def _expire_if_stale(self, checkout: Checkout) -> None:
    if is_terminal(checkout.status) or self.clock() <= checkout.expires_at:
      return
    logger.info("Checkout session %s expired", checkout.id)
    checkout.status = CheckoutStatus.CANCELED
    checkout.continue_url = None
    checkout.messages.append(
        Message(
            type=MessageType.ERROR,
            code="EXPIRED",
            message="Checkout session has expired",
        )
    )
    await self.store.save_checkout(checkout)

  def _ensure_ready(self, checkout: Checkout) -> None:
    """Ensures that the checkout can be completed."""
    details = {"current_status": checkout.status.value}
    if checkout.status == CheckoutStatus.COMPLETED:
      raise InvalidStateError("Checkout already completed", details=details)
    if checkout.status == CheckoutStatus.CANCELED:
      raise InvalidStateError(
          "Cannot complete canceled checkout", details=details
      )
    if checkout.status != CheckoutStatus.READY_FOR_COMPLETE:
      details["hint"] = NOT_READY_HINT
      raise InvalidStateError(
          "Checkout not ready for completion", details=details
      )

  def _refresh_status(self, checkout: Checkout) -> None:
    continue_url = self.escalation_url(checkout)
    if continue_url:
      checkout.status = CheckoutStatus.REQUIRES_ESCALATION
      checkout.continue_url = continue_url
      return
    checkout.status = derive_status(
        checkout.line_items, checkout.payment.selected_instrument_id
    )
    checkout.continue_url = None

  def _merge_payment(
      self, payment: PaymentResponse, payment_req: PaymentRequest
  ) -> None:
    supplied = payment_req.model_fields_set
    if "selected_instrument_id" in supplied:
      payment.selected_instrument_id = payment_req.selected_instrument_id
    if "instruments" in supplied and payment_req.instruments is not None:
      payment.instruments = payment_req.instruments

  def _settle_payment(
      self, checkout: Checkout, payment_data: PaymentDataFields
  ) -> None:
    """Simulates the external payment call.

    The handler id is trusted as submitted; it is not cross-checked against
    the handlers advertised in the discovery profile.

    Raises:
      PaymentDeclinedError: if the token is the mock decline token.
    """
    if payment_data.token == FAIL_TOKEN:
      raise PaymentDeclinedError()
    logger.info(
        "Captured %d %s for checkout %s via %s",
        checkout.totals.total,
        checkout.currency,
        checkout.id,
        payment_data.handler_id,
    )

  def _create_order(self, checkout: Checkout) -> Order:
    now = self.clock()
    return Order(
        id=f"ORD-{uuid.uuid4().hex[:8].upper()}",
        checkout_id=checkout.id,
        status=OrderStatus.PENDING,
        line_items=[li.model_copy(deep=True) for li in checkout.line_items],
        totals=checkout.totals.model_copy(),
        buyer=checkout.buyer.model_copy() if checkout.buyer else None,
        created_at=now,
        updated_at=now,
    )

  def _next_expiry(self) -> datetime.datetime:
    return self.clock() + self.session_ttl

  def _ucp_metadata(self) -> UcpMetadata:
    version = config.get_server_version()
    return UcpMetadata(
        version=version,
        capabilities=[
            Capability(name=config.CHECKOUT_CAPABILITY, version=version)
        ],
    )
