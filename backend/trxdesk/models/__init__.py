from .auth import User, SessionToken
from .transactions import Transaction, TransactionSequence, TransactionHistory
from .handovers import Handover, HandoverItem

__all__ = [
    'User', 'SessionToken',
    'Transaction', 'TransactionSequence', 'TransactionHistory',
    'Handover', 'HandoverItem',
]
