from src.core.schemas.invoice import InvoiceCreate, InvoiceTemplate, LineItemTemplate

__all__ = [
    "InvoiceCreate",
    "InvoiceTemplate",
    "LineItemTemplate",
]
