from .invoice_repository import InvoiceRepository
from .lut_repository import LutRepository

__all__ = [
    "InvoiceRepository",
    "LutRepository",
]
