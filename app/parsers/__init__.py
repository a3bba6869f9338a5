"""
app/parsers package marker.
"""

from app.parsers.customer_csv_parser import CustomerCSVParser, CustomerRowStream, validate_dialect

__all__ = [
    "CustomerCSVParser",
    "CustomerRowStream",
    "validate_dialect",
]
