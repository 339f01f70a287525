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

"""Custom exceptions for the UCP Merchant Server."""

from typing import Any, Dict, Optional


class UcpError(Exception):
  """Base class for all UCP exceptions."""

  def __init__(
      self,
      message: str,
      code: str = "INTERNAL_ERROR",
      status_code: int = 500,
      details: Optional[Dict[str, Any]] = None,
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    self.details = details or {}
    super().__init__(self.message)


class ValidationError(UcpError):
  """Raised when required input is missing from a request."""

  def __init__(self, message: str):
    super().__init__(message, code="INVALID_REQUEST", status_code=400)


class NotFoundError(UcpError):
  """Raised when a checkout session or order does not exist."""

  def __init__(self, message: str):
    super().__init__(message, code="RESOURCE_NOT_FOUND", status_code=404)


class InvalidStateError(UcpError):
  """Raised when an operation is not permitted in the current status."""

  def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
    super().__init__(
        message, code="INVALID_STATE", status_code=400, details=details
    )


class VersionUnsupportedError(UcpError):
  """Raised when the platform speaks a newer protocol version."""

  def __init__(self, message: str):
    super().__init__(message, code="VERSION_UNSUPPORTED", status_code=400)


class ItemResolutionError(UcpError):
  """Raised for a single line item that cannot be priced.

  The resolver collects these instead of letting them abort the operation.
  """

  def __init__(self, message: str, product_id: str):
    self.product_id = product_id
    super().__init__(message, code="ITEM_ERROR", status_code=400)


class PaymentDeclinedError(UcpError):
  """Raised when simulated settlement declines the payment."""

  def __init__(self, message: str = "Payment was declined"):
    super().__init__(message, code="PAYMENT_FAILED", status_code=400)
