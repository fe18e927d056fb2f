"""API v1 router aggregating all sub-routers."""

from fastapi import APIRouter, Depends

from orderflow.api.v1.orders import router as orders_router
from orderflow.api.v1.resources import router as resources_router
from orderflow.api.v1.tasks import router as tasks_router
from orderflow.core.auth import verify_api_key
from orderflow.core.rate_limit import rate_limit_default

# Public router (no authentication required)
api_v1_router = APIRouter()


@api_v1_router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint returning 200 OK."""
    return {"status": "ok"}


# Authenticated router with the default rate limit. Assignment and
# rescheduling routes add the tighter scheduling budget on top.
_authenticated = APIRouter(dependencies=[Depends(verify_api_key), Depends(rate_limit_default)])
_authenticated.include_router(orders_router)
_authenticated.include_router(tasks_router)
_authenticated.include_router(resources_router)

api_v1_router.include_router(_authenticated)
