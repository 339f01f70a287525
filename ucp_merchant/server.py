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

"""UCP Demo Merchant Server (Python/FastAPI)."""

import logging
import time
from typing import Sequence

from absl import app as absl_app
from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ucp_merchant import config
from ucp_merchant.exceptions import UcpError
from ucp_merchant.routes.checkout import router as checkout_router
from ucp_merchant.routes.discovery import router as discovery_router
from ucp_merchant.routes.order import router as order_router
import uvicorn

# --- App Setup ---

logger = logging.getLogger(__name__)

SHOPPING_PREFIX = "/api/shopping"

app = FastAPI(
    title="UCP Shopping Service",
    version=config.get_server_version(),
    description="Demo merchant implementation of the UCP Shopping Service",
    lifespan=config.lifespan,
)

# Platforms include browser-based agents.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
  """Logs method, path, status and latency of every request."""
  start = time.perf_counter()
  response = await call_next(request)
  logger.info(
      "%s %s -> %d (%.1f ms)",
      request.method,
      request.url.path,
      response.status_code,
      (time.perf_counter() - start) * 1000,
  )
  return response


@app.exception_handler(UcpError)
async def ucp_exception_handler(request: Request, exc: UcpError):
  """Handles UCP-specific exceptions and converts them to JSON responses."""
  del request  # Unused.
  return JSONResponse(
      status_code=exc.status_code,
      content={"detail": exc.message, "code": exc.code, **exc.details},
  )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
):
  """Reports malformed request bodies in the same shape as UcpError."""
  del request  # Unused.
  errors = [
      {"loc": [str(part) for part in e["loc"]], "msg": e["msg"]}
      for e in exc.errors()
  ]
  detail = "; ".join(f"{'.'.join(e['loc'])}: {e['msg']}" for e in errors)
  return JSONResponse(
      status_code=400,
      content={"detail": detail, "code": "INVALID_REQUEST", "errors": errors},
  )


app.include_router(discovery_router)
app.include_router(checkout_router, prefix=SHOPPING_PREFIX)
app.include_router(order_router, prefix=SHOPPING_PREFIX)


def main(argv: Sequence[str]) -> None:
  """Main entry point for the UCP Merchant Server."""
  del argv  # Unused.
  logging.basicConfig(level=logging.INFO)

  port = config.FLAGS.port
  logger.info("Discovery:  http://localhost:%d/.well-known/ucp", port)
  logger.info(
      "Checkout:   http://localhost:%d%s/checkout-sessions",
      port,
      SHOPPING_PREFIX,
  )
  uvicorn.run(app, host="0.0.0.0", port=port)


def run() -> None:
  """Console script entry point."""
  absl_app.run(main)


if __name__ == "__main__":
  run()
