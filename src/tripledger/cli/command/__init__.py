from __future__ import annotations

# Command implementations for the tripledger CLI.
# Each command module exposes a `run(...)` function that performs the action
# and prints to the console. Typer wrappers in tripledger.cli.app delegate here.
