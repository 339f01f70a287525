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

"""Resolution of requested products into priced line items.

The platform only sends product ids and quantities; the merchant looks up
authoritative names and prices in its catalog. Resolution supports partial
success: items that cannot be priced are reported as error strings and left
out, while the rest are returned in request order.
"""

import logging
from typing import List, Sequence, Tuple
import uuid

from ucp_merchant.catalog import Catalog
from ucp_merchant.exceptions import ItemResolutionError
from ucp_merchant.models import ItemSnapshot
from ucp_merchant.models import LineItem
from ucp_merchant.models import LineItemRequest

logger = logging.getLogger(__name__)


def resolve_line_item(
    catalog: Catalog, request: LineItemRequest, currency: str
) -> LineItem:
  """Resolves one request into a priced line item.

  Raises:
    ItemResolutionError: if the product is unknown, out of stock, or priced
      in a different currency.
  """
  product_id = request.item.id
  product = catalog.get_product(product_id)
  if not product:
    raise ItemResolutionError(f"Product not found: {product_id}", product_id)

  if not product.in_stock:
    raise ItemResolutionError(
        f"Product out of stock: {product.name}", product_id
    )

  if product.currency != currency:
    raise ItemResolutionError(
        f"Currency mismatch for {product.name}: expected {currency}, got"
        f" {product.currency}",
        product_id,
    )

  return LineItem(
      id=str(uuid.uuid4()),
      item=ItemSnapshot(
          id=product.id,
          name=product.name,
          description=product.description,
          image_url=product.image_url,
      ),
      quantity=request.quantity,
      unit_price=product.price,
      total_price=product.price * request.quantity,
  )


def resolve_line_items(
    catalog: Catalog,
    requests: Sequence[LineItemRequest],
    currency: str,
) -> Tuple[List[LineItem], List[str]]:
  """Resolves every request independently.

  Args:
    catalog: The product catalog to price against.
    requests: Requested products and quantities.
    currency: The session currency every product must be priced in.

  Returns:
    A tuple of the resolved line items, in request order, and the error
    messages for the requests that were skipped.
  """
  items = []
  errors = []
  for request in requests:
    try:
      items.append(resolve_line_item(catalog, request, currency))
    except ItemResolutionError as e:
      logger.info("Skipping line item %s: %s", e.product_id, e.message)
      errors.append(e.message)
  return items, errors
