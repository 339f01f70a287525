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

"""Tests for checkout totals calculation."""

from absl.testing import absltest
from ucp_merchant.models import ItemSnapshot
from ucp_merchant.models import LineItem
from ucp_merchant.services import pricing


def _line_item(unit_price: int, quantity: int) -> LineItem:
  return LineItem(
      id="li-1",
      item=ItemSnapshot(id="p", name="P", description="d"),
      quantity=quantity,
      unit_price=unit_price,
      total_price=unit_price * quantity,
  )


class CalculateTaxTest(absltest.TestCase):

  def test_rounds_half_up(self):
    # 200 * 0.0875 = 17.5
    self.assertEqual(pricing.calculate_tax(200, 0.0875), 18)

  def test_rounds_down_below_half(self):
    # 3499 * 0.0875 = 306.1625
    self.assertEqual(pricing.calculate_tax(3499, 0.0875), 306)

  def test_zero_subtotal(self):
    self.assertEqual(pricing.calculate_tax(0, 0.0875), 0)


class CalculateTotalsTest(absltest.TestCase):

  def test_empty_line_items_still_charge_shipping(self):
    totals = pricing.calculate_totals([])

    self.assertEqual(totals.subtotal, 0)
    self.assertEqual(totals.tax, 0)
    self.assertEqual(totals.shipping, 599)
    self.assertEqual(totals.discount, 0)
    self.assertEqual(totals.total, 599)

  def test_below_threshold_adds_shipping(self):
    totals = pricing.calculate_totals([_line_item(3499, 1)])

    self.assertEqual(totals.subtotal, 3499)
    self.assertEqual(totals.tax, 306)
    self.assertEqual(totals.shipping, 599)
    self.assertEqual(totals.total, 3499 + 306 + 599)

  def test_threshold_is_inclusive(self):
    totals = pricing.calculate_totals([_line_item(2500, 2)])

    self.assertEqual(totals.subtotal, 5000)
    self.assertEqual(totals.shipping, 0)

  def test_sums_multiple_line_items(self):
    totals = pricing.calculate_totals(
        [_line_item(4999, 2), _line_item(3499, 1)]
    )

    self.assertEqual(totals.subtotal, 13497)
    # 13497 * 0.0875 = 1180.9875
    self.assertEqual(totals.tax, 1181)
    self.assertEqual(totals.shipping, 0)
    self.assertEqual(totals.total, 14678)

  def test_total_identity_holds(self):
    for items in ([], [_line_item(1, 1)], [_line_item(999, 7)]):
      totals = pricing.calculate_totals(items)
      self.assertEqual(
          totals.total,
          totals.subtotal + totals.tax + totals.shipping - totals.discount,
      )

  def test_custom_pricing(self):
    config = pricing.PricingConfig(
        tax_rate=0.1, free_shipping_threshold=100, shipping_fee=50
    )

    totals = pricing.calculate_totals([_line_item(40, 2)], config)

    self.assertEqual(totals.tax, 8)
    self.assertEqual(totals.shipping, 50)
    self.assertEqual(totals.total, 138)


if __name__ == "__main__":
  absltest.main()
