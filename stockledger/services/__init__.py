"""
Stock services — modular organization of ledger operations.

    from stockledger.services import ReasonPolicy, StockLedger, MovementRecorder, MovementQuery
"""

from stockledger.services.ledger import StockLedger
from stockledger.services.queries import MovementQuery
from stockledger.services.reasons import ReasonPolicy
from stockledger.services.recorder import MovementRecorder

__all__ = [
    'ReasonPolicy',
    'StockLedger',
    'MovementRecorder',
    'MovementQuery',
]
