from .inventory import Product
from .sales import SalesTransaction, SaleItem
from .archive import ArchiveLog

__all__ = [
    'Product',
    'SalesTransaction', 'SaleItem',
    'ArchiveLog',
]
