from .user import User
from .client import Client
from .material import Material
from .inventory import InventoryMovement
from .transaction import Transaction, TransactionDetail

__all__ = [n for n in dir() if n[:1].isupper()]
