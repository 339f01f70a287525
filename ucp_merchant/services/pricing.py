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

"""Checkout totals calculation."""

from decimal import Decimal
from decimal import ROUND_HALF_UP
from typing import Sequence

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from ucp_merchant.models import LineItem
from ucp_merchant.models import Totals


class PricingConfig(BaseModel):
  """Tax and shipping parameters. Amounts are in cents."""

  model_config = ConfigDict(frozen=True)

  tax_rate: float = Field(default=0.0875, ge=0)
  free_shipping_threshold: int = Field(default=5000, ge=0)
  shipping_fee: int = Field(default=599, ge=0)


DEFAULT_PRICING = PricingConfig()


def calculate_tax(subtotal: int, tax_rate: float) -> int:
  """Applies the tax rate, rounding half up to the nearest cent."""
  # str() keeps the rate exact, e.g. 0.0875 rather than its binary expansion.
  tax = Decimal(subtotal) * Decimal(str(tax_rate))
  return int(tax.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def calculate_totals(
    line_items: Sequence[LineItem],
    pricing: PricingConfig = DEFAULT_PRICING,
) -> Totals:
  """Computes subtotal, tax, shipping, discount and total for line items.

  There is no promotion engine, so the discount is always zero.
  """
  subtotal = sum(item.total_price for item in line_items)
  tax = calculate_tax(subtotal, pricing.tax_rate)
  if subtotal >= pricing.free_shipping_threshold:
    shipping = 0
  else:
    shipping = pricing.shipping_fee
  discount = 0

  return Totals(
      subtotal=subtotal,
      tax=tax,
      shipping=shipping,
      discount=discount,
      total=subtotal + tax + shipping - discount,
  )
