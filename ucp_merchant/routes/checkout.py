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

"""Checkout session routes for the UCP shopping service."""

from typing import Any, Dict, Optional

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import Path
from fastapi.responses import JSONResponse
from ucp_merchant import dependencies
from ucp_merchant.enums import CheckoutStatus
from ucp_merchant.models import Checkout
from ucp_merchant.models import CheckoutCreateRequest
from ucp_merchant.models import CheckoutUpdateRequest
from ucp_merchant.models import CompleteCheckoutRequest
from ucp_merchant.services.checkout_service import CheckoutService

router = APIRouter()


def _render(checkout: Checkout) -> Dict[str, Any]:
  return checkout.model_dump(mode="json", exclude_none=True)


@router.post(
    "/checkout-sessions",
    status_code=201,
    operation_id="create_checkout",
    summary="Create Checkout",
)
async def create_checkout(
    checkout_req: CheckoutCreateRequest = Body(...),
    common_headers: dependencies.CommonHeaders = Depends(
        dependencies.common_headers
    ),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> Dict[str, Any]:
  """Creates a checkout session from product ids and quantities."""
  del common_headers  # Unused
  result = await checkout_service.create_checkout(checkout_req)
  return _render(result)


@router.get(
    "/checkout-sessions/{id}",
    operation_id="get_checkout",
    summary="Get Checkout",
)
async def get_checkout(
    checkout_id: str = Path(..., alias="id"),
    common_headers: dependencies.CommonHeaders = Depends(
        dependencies.common_headers
    ),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> Dict[str, Any]:
  """Returns the current state of a checkout session."""
  del common_headers  # Unused
  result = await checkout_service.get_checkout(checkout_id)
  return _render(result)


@router.put(
    "/checkout-sessions/{id}",
    operation_id="update_checkout",
    summary="Update Checkout",
)
async def update_checkout(
    checkout_id: str = Path(..., alias="id"),
    checkout_req: CheckoutUpdateRequest = Body(...),
    common_headers: dependencies.CommonHeaders = Depends(
        dependencies.common_headers
    ),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> Dict[str, Any]:
  """Replaces line items, payment selection or buyer details."""
  del common_headers  # Unused
  result = await checkout_service.update_checkout(checkout_id, checkout_req)
  return _render(result)


@router.post(
    "/checkout-sessions/{id}/complete",
    operation_id="complete_checkout",
    summary="Complete Checkout",
)
async def complete_checkout(
    checkout_id: str = Path(..., alias="id"),
    complete_req: Optional[CompleteCheckoutRequest] = Body(None),
    common_headers: dependencies.CommonHeaders = Depends(
        dependencies.common_headers
    ),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> JSONResponse:
  """Settles payment and places the order.

  A declined payment returns the reverted session with a 400 status.
  """
  del common_headers  # Unused
  result = await checkout_service.complete_checkout(
      checkout_id, complete_req or CompleteCheckoutRequest()
  )
  status_code = 200 if result.status == CheckoutStatus.COMPLETED else 400
  return JSONResponse(status_code=status_code, content=_render(result))


@router.post(
    "/checkout-sessions/{id}/cancel",
    operation_id="cancel_checkout",
    summary="Cancel Checkout",
)
async def cancel_checkout(
    checkout_id: str = Path(..., alias="id"),
    common_headers: dependencies.CommonHeaders = Depends(
        dependencies.common_headers
    ),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> Dict[str, Any]:
  """Cancels a checkout session."""
  del common_headers  # Unused
  result = await checkout_service.cancel_checkout(checkout_id)
  return _render(result)


@router.get(
    "/products",
    operation_id="list_products",
    summary="List Products",
)
async def list_products(
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> Dict[str, Any]:
  """Lists the catalog. Not part of the protocol, but handy for demos."""
  products = checkout_service.list_products()
  return {"products": [p.model_dump(mode="json") for p in products]}
