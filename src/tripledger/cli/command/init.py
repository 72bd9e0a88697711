"""Initialize a data root: directories, seed config, SQLite store and workspaces."""

from __future__ import annotations

from pydantic import ValidationError as ParameterFileError

from tripledger.data_root import DataRoot
from tripledger.errors import LedgerError
from tripledger.model.budget import WorkspaceId
from tripledger.model.parameters_io import STARTER_PARAMETERS_YML, load_parameters_config
from tripledger.services.change_log_service import ChangeLogService
from tripledger.services.recalculator import AutoItemRecalculator
from tripledger.services.workspace_store import WorkspaceStore
from tripledger.storage.ledger_store import LedgerStore

from .util import console


def run(*, data_root: DataRoot, actor: str) -> int:
    """Initialize (or migrate) the ledger under ``data_root``.

    Creates the directory structure and the starter parameters file, creates
    the store or adds columns missing from an older one, then seeds every
    workspace that has no parameters record yet from config/parameters.yml.
    Safe to run repeatedly.

    Args:
        data_root: Data root to initialize
        actor: Name recorded in the change log

    Returns:
        Exit code (0 = success)
    """
    root = data_root.root
    console.print(f"[bold cyan]Initializing data root:[/] {root}\n")

    created = []
    skipped = []

    for directory in [data_root.ledger_db_path.parent, data_root.reports_dir, root / "config"]:
        if directory.exists():
            skipped.append(str(directory.relative_to(root)) + "/")
        else:
            directory.mkdir(parents=True, exist_ok=True)
            created.append(str(directory.relative_to(root)) + "/")

    config_path = data_root.parameters_config
    if config_path.exists():
        skipped.append(str(config_path.relative_to(root)))
    else:
        config_path.write_text(STARTER_PARAMETERS_YML, encoding="utf-8")
        created.append(str(config_path.relative_to(root)))

    db_existed = data_root.ledger_db_path.exists()
    try:
        store = LedgerStore(data_root.ledger_db_path, auto_migrate=False)
        migrated = store.migrate()
        seed = load_parameters_config(config_path)

        change_log = ChangeLogService(store)
        workspaces = WorkspaceStore(store, change_log)
        recalculator = AutoItemRecalculator(store, change_log)

        seeded = []
        for workspace in WorkspaceId:
            if workspaces.get_parameters(workspace) is None:
                workspaces.seed_parameters(workspace, seed, actor)
                recalculator.recalculate(workspace, actor)
                seeded.append(workspace.value)
    except LedgerError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1
    except ParameterFileError as e:
        console.print(f"[red]Error:[/] Invalid {config_path.name}: {e}")
        return 1

    if not db_existed:
        created.append(str(data_root.ledger_db_path.relative_to(root)))

    if created:
        console.print("[green]Created:[/]")
        for c in created:
            console.print(f"  {c}")
    if skipped:
        console.print("[dim]Already exists (skipped):[/dim]")
        for s in skipped:
            console.print(f"  [dim]{s}[/dim]")
    if migrated and db_existed:
        console.print("[yellow]Migrated store, added columns:[/]")
        for column in migrated:
            console.print(f"  {column}")
    if seeded:
        console.print(f"[green]Seeded parameters for:[/] {', '.join(seeded)}")

    console.print(f"\n[green]Ledger ready at {root}[/]")
    if seeded:
        console.print("\n[dim]Next steps:[/dim]")
        console.print("  1. Review parameters: tripledger params -w sandbox")
        console.print("  2. Add line items: tripledger add-item --help")
        console.print("  3. Promote when ready: tripledger promote sandbox concrete --write")
    return 0
