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

"""Tests for checkout status derivation."""

from absl.testing import absltest
from ucp_merchant.enums import CheckoutStatus
from ucp_merchant.models import ItemSnapshot
from ucp_merchant.models import LineItem
from ucp_merchant.services import status

_LINE_ITEM = LineItem(
    id="li-1",
    item=ItemSnapshot(id="p", name="P", description="d"),
    quantity=1,
    unit_price=100,
    total_price=100,
)


class DeriveStatusTest(absltest.TestCase):

  def test_no_line_items_is_incomplete(self):
    self.assertEqual(
        status.derive_status([], "inst-1"), CheckoutStatus.INCOMPLETE
    )

  def test_no_selected_instrument_is_incomplete(self):
    self.assertEqual(
        status.derive_status([_LINE_ITEM], None), CheckoutStatus.INCOMPLETE
    )
    self.assertEqual(
        status.derive_status([_LINE_ITEM], ""), CheckoutStatus.INCOMPLETE
    )

  def test_items_and_selection_is_ready(self):
    self.assertEqual(
        status.derive_status([_LINE_ITEM], "inst-1"),
        CheckoutStatus.READY_FOR_COMPLETE,
    )


class IsTerminalTest(absltest.TestCase):

  def test_terminal_statuses(self):
    self.assertTrue(status.is_terminal(CheckoutStatus.COMPLETED))
    self.assertTrue(status.is_terminal(CheckoutStatus.CANCELED))

  def test_non_terminal_statuses(self):
    for s in (
        CheckoutStatus.INCOMPLETE,
        CheckoutStatus.REQUIRES_ESCALATION,
        CheckoutStatus.READY_FOR_COMPLETE,
        CheckoutStatus.COMPLETE_IN_PROGRESS,
    ):
      self.assertFalse(status.is_terminal(s), s)


if __name__ == "__main__":
  absltest.main()
