"""Request Dependencies — resolve per-application components from app.state.

Invariants:
    - Components are created once in the lifespan (main.py) and read here, never built per request

Design Decisions:
    - app.state over module globals: the registry and bus belong to one app instance,
      tests swap them by assigning app.state
"""

from fastapi import Request

from app.services.listing_service import ListingService


def get_listing_service(request: Request) -> ListingService:
    return request.app.state.listing_service
