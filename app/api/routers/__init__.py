"""
app/api/routers package marker.
"""

from app.api.routers.customers import router as customers_router

__all__ = [
    "customers_router",
]
