from .sales import Transaction, Order, OrderItem, Sale, VoidLog
from .inventory import InventoryItem
from .closures import MonthClosure

__all__ = [
    'Transaction', 'Order', 'OrderItem', 'Sale', 'VoidLog',
    'InventoryItem',
    'MonthClosure',
]
