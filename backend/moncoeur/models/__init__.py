from .auth import User, SessionToken
from .accounts import BankAccount
from .inventory import Bag, ReferenceSequence
from .sales import Sale

__all__ = [
    'User', 'SessionToken',
    'BankAccount',
    'Bag', 'ReferenceSequence',
    'Sale',
]
