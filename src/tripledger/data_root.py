"""
DataRoot - centralized data path resolution for the budget ledger.

A DataRoot is the directory containing the SQLite store and seed config.
All paths are computed relative to this root.

Resolution priority:
1. Explicit path (--data-dir CLI option)
2. TRIPLEDGER_DATA environment variable
3. Current working directory
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class DataRoot:
    """Root directory for all ledger data paths."""

    root: Path

    @classmethod
    def resolve(cls, explicit: Path | None = None) -> DataRoot:
        """Resolve the data root from explicit path, env var, or CWD.

        Args:
            explicit: Explicitly provided path (highest priority)

        Returns:
            DataRoot with resolved root
        """
        if explicit is not None:
            return cls(root=explicit)
        env = os.environ.get("TRIPLEDGER_DATA")
        if env:
            return cls(root=Path(env))
        return cls(root=Path.cwd())

    @property
    def ledger_db_path(self) -> Path:
        return self.root / "data" / "ledger.db"

    @property
    def parameters_config(self) -> Path:
        return self.root / "config" / "parameters.yml"

    @property
    def reports_dir(self) -> Path:
        return self.root / "reports"


__all__ = ["DataRoot"]
