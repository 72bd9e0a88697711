"""tripledger: versioned budget ledger for group trips."""

__version__ = "0.1.0"
