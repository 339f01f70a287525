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

"""Readiness computation for checkout sessions.

Only `incomplete` and `ready_for_complete` are derived here. The remaining
statuses are entered explicitly by the checkout service:

  incomplete -> ready_for_complete -> complete_in_progress -> completed
  incomplete -> requires_escalation -> ready_for_complete
  any non-terminal status -> canceled

A declined payment moves complete_in_progress back to ready_for_complete.
"""

from typing import Optional, Sequence

from ucp_merchant.enums import CheckoutStatus
from ucp_merchant.enums import TERMINAL_STATUSES
from ucp_merchant.models import LineItem


def derive_status(
    line_items: Sequence[LineItem],
    selected_instrument_id: Optional[str],
) -> CheckoutStatus:
  """Returns the readiness status of a session's current contents."""
  if not line_items:
    return CheckoutStatus.INCOMPLETE

  if not selected_instrument_id:
    return CheckoutStatus.INCOMPLETE

  return CheckoutStatus.READY_FOR_COMPLETE


def is_terminal(status: CheckoutStatus) -> bool:
  return status in TERMINAL_STATUSES
