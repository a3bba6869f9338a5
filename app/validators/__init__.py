"""
app/validators package marker.
"""

from app.validators.customer_row_validator import CustomerRowValidator

__all__ = [
    "CustomerRowValidator",
]
