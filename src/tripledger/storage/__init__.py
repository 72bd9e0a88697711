from .ledger_store import LedgerStore, OPTIONAL_COLUMNS, table_for

__all__ = ["LedgerStore", "OPTIONAL_COLUMNS", "table_for"]
