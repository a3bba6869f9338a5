"""
app/repositories package marker.
"""

from app.repositories.customer_repository import CustomerRepository
from app.repositories.customer_store import CustomerStore

__all__ = [
    "CustomerRepository",
    "CustomerStore",
]
