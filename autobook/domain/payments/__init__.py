"""
Payments domain: payment intents, the payment ledger and reconciliation of
gateway events.
"""

from .router import router

__all__ = ["router"]
