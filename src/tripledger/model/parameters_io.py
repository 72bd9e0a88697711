from __future__ import annotations

"""
Seed parameters I/O (YAML loading and saving).

Functions for reading and writing config/parameters.yml, the values a fresh
workspace is seeded with by `tripledger init`.
"""

from pathlib import Path

import yaml

from tripledger.model.budget import Parameters

STARTER_PARAMETERS_YML = """\
# Trip parameters used to seed every workspace on `tripledger init`.
# Leave a value empty (~) to treat it as zero in calculations.
children_count: ~
leader_count: ~
asked_price_child: ~
asked_price_leader: ~
buffer_percentage: 5
transport_daily_rate: ~
transport_free_distance_per_day: ~
transport_extra_distance_price: ~
fuel_price: ~
support_distance: ~
catering_price_per_day: ~
catering_days: ~
"""


def load_parameters_config(path: Path) -> Parameters:
    """Load seed parameters from YAML (safe loader).

    Args:
        path: Path to parameters.yml

    Returns:
        Parameters instance (all fields None if the file is missing or empty)

    Raises:
        pydantic.ValidationError: if a value is not numeric
    """
    if not path.exists():
        return Parameters()

    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return Parameters.model_validate(data)


def save_parameters_config(path: Path, parameters: Parameters) -> None:
    """Save parameters to a YAML file, creating parent directories if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)

    data = parameters.model_dump(exclude={"id"}, mode="json")

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(
            data,
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )


__all__ = [
    "STARTER_PARAMETERS_YML",
    "load_parameters_config",
    "save_parameters_config",
]
