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

"""Wire models for the UCP merchant server.

These pydantic models describe the catalog, checkout session, order and
discovery payloads exchanged with platforms. Amounts are integers in minor
currency units (cents).
"""

import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from ucp_merchant.enums import CheckoutStatus
from ucp_merchant.enums import MessageType
from ucp_merchant.enums import OrderStatus
from ucp_merchant.enums import PaymentStatus

# --- Catalog ---


class Product(BaseModel):
  """Immutable catalog entry."""

  model_config = ConfigDict(frozen=True)

  id: str
  name: str
  description: str
  price: int = Field(ge=0)  # In cents
  currency: str
  image_url: Optional[str] = None
  in_stock: bool = True


# --- Line items ---


class ItemReference(BaseModel):
  id: str


class LineItemRequest(BaseModel):
  """A product the platform wants to buy, by catalog id."""

  item: ItemReference
  quantity: int = Field(ge=1)


class ItemSnapshot(BaseModel):
  """Denormalized product details captured at resolution time."""

  id: str
  name: str
  description: str
  image_url: Optional[str] = None


class LineItem(BaseModel):
  id: str
  item: ItemSnapshot
  quantity: int
  unit_price: int
  total_price: int


class Totals(BaseModel):
  subtotal: int = 0
  tax: int = 0
  shipping: int = 0
  discount: int = 0
  total: int = 0


# --- Payment ---


class PaymentInstrument(BaseModel):
  id: str
  handler_id: str
  type: str
  display_name: Optional[str] = None


class PaymentRequest(BaseModel):
  """Payment section of create/update requests.

  On update each field replaces the session's value only when it is present
  in the request body; an explicit null selection clears it.
  """

  selected_instrument_id: Optional[str] = None
  instruments: Optional[List[PaymentInstrument]] = None


class PaymentResponse(BaseModel):
  selected_instrument_id: Optional[str] = None
  instruments: List[PaymentInstrument] = Field(default_factory=list)
  status: PaymentStatus = PaymentStatus.PENDING


class PaymentDataFields(BaseModel):
  """Credential reference submitted on completion."""

  model_config = ConfigDict(extra="allow")

  handler_id: Optional[str] = None
  token: Optional[str] = None


class CompleteCheckoutRequest(BaseModel):
  payment_data: PaymentDataFields = Field(default_factory=PaymentDataFields)


# --- Checkout ---


class Buyer(BaseModel):
  email: Optional[str] = None
  name: Optional[str] = None
  phone: Optional[str] = None


class Message(BaseModel):
  type: MessageType
  code: str
  message: str


class Link(BaseModel):
  rel: str
  href: str
  title: Optional[str] = None


class OrderConfirmation(BaseModel):
  """Lightweight reference from a completed session to its order."""

  id: str
  created_at: datetime.datetime


class Capability(BaseModel):
  name: str
  version: str


class UcpMetadata(BaseModel):
  version: str
  capabilities: List[Capability] = Field(default_factory=list)


class Checkout(BaseModel):
  """A checkout session. The merchant is authoritative for every field."""

  ucp: UcpMetadata
  id: str
  status: CheckoutStatus = CheckoutStatus.INCOMPLETE
  currency: str
  line_items: List[LineItem] = Field(default_factory=list)
  totals: Totals = Field(default_factory=Totals)
  payment: PaymentResponse = Field(default_factory=PaymentResponse)
  links: List[Link] = Field(default_factory=list)
  buyer: Optional[Buyer] = None
  messages: List[Message] = Field(default_factory=list)
  expires_at: datetime.datetime
  # Required while status is requires_escalation.
  continue_url: Optional[str] = None
  # Present once status is completed.
  order: Optional[OrderConfirmation] = None


class CheckoutCreateRequest(BaseModel):
  # Required fields are validated by the service so that missing input is
  # reported as INVALID_REQUEST instead of a schema error.
  line_items: Optional[List[LineItemRequest]] = None
  currency: Optional[str] = None
  payment: Optional[PaymentRequest] = None
  buyer: Optional[Buyer] = None


class CheckoutUpdateRequest(BaseModel):
  line_items: Optional[List[LineItemRequest]] = None
  payment: Optional[PaymentRequest] = None
  buyer: Optional[Buyer] = None


# --- Order ---


class Order(BaseModel):
  id: str
  checkout_id: str
  status: OrderStatus = OrderStatus.PENDING
  line_items: List[LineItem]
  totals: Totals
  buyer: Optional[Buyer] = None
  created_at: datetime.datetime
  updated_at: datetime.datetime


# --- Discovery ---


class UcpCapability(BaseModel):
  model_config = ConfigDict(populate_by_name=True)

  name: str
  version: str
  spec: Optional[str] = None
  schema_: Optional[str] = Field(default=None, alias="schema")
  config: Optional[Dict[str, Any]] = None


class ServiceEndpoint(BaseModel):
  endpoint: str


class UcpService(BaseModel):
  version: str
  rest: Optional[ServiceEndpoint] = None
  mcp: Optional[ServiceEndpoint] = None
  capabilities: List[UcpCapability]


class PaymentHandler(BaseModel):
  id: str
  name: str
  type: Literal["first_party", "third_party"]
  supported_networks: Optional[List[str]] = None
  supported_tokens: Optional[List[str]] = None
  config: Optional[Dict[str, Any]] = None


class UcpProfile(BaseModel):
  version: str
  services: Dict[str, UcpService]


class PaymentProfile(BaseModel):
  handlers: List[PaymentHandler] = Field(default_factory=list)


class UcpDiscoveryProfile(BaseModel):
  ucp: UcpProfile
  payment: Optional[PaymentProfile] = None
