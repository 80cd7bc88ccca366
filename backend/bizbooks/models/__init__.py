from .auth import User, SessionToken
from .parties import Vendor, Customer
from .orders import PurchaseOrder, SaleOrder
from .invoices import Invoice, Payment
from .expenses import Expense
from .documents import DocumentSequence

__all__ = [
    'User', 'SessionToken',
    'Vendor', 'Customer',
    'PurchaseOrder', 'SaleOrder',
    'Invoice', 'Payment',
    'Expense',
    'DocumentSequence',
]
