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

"""Read-only product catalog."""

import json
import os
from typing import Iterable, List, Optional, Union

from ucp_merchant.models import Product


class Catalog:
  """Product lookup backed by an in-process map.

  Products are seeded once when the process starts and are never mutated.
  """

  def __init__(self, products: Iterable[Product]):
    self._products = {product.id: product for product in products}

  @classmethod
  def from_json(cls, path: Union[str, os.PathLike]) -> "Catalog":
    """Loads products from a JSON file containing a list of products."""
    with open(path, "r", encoding="utf-8") as f:
      products_data = json.load(f)
    return cls(Product.model_validate(p) for p in products_data)

  def get_product(self, product_id: str) -> Optional[Product]:
    """Retrieves a product by its ID.

    Args:
        product_id (str): Product ID

    Returns:
        Product | None: Product object if found, None otherwise
    """
    return self._products.get(product_id)

  def list_products(self) -> List[Product]:
    return list(self._products.values())
