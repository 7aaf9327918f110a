"""
Celebration Engine - escrowed conditional contribution lifecycle

Conditional campaign contributions ("celebrations") are held in escrow
until a legislative condition occurs. The engine owns the status ledger,
the FEC compliance tier and contribution limit math, and the settlement
coordinator that reconciles payment-provider events against the ledger
exactly once.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
