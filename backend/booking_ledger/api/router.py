"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter, Response

from booking_ledger.api.routes import bookings, checkout

api_router = APIRouter(prefix="/api")
api_router.include_router(checkout.router)
api_router.include_router(bookings.router)


async def preflight() -> Response:
    """Bare OPTIONS requests get an empty 200; CORSMiddleware handles real preflights."""
    return Response(status_code=200)


for route_path in ("/create-checkout", "/webhook", "/booking-details", "/create-direct-booking"):
    api_router.add_api_route(route_path, preflight, methods=["OPTIONS"], include_in_schema=False)
