"""
Central constants for the budget ledger.

Path resolution lives in tripledger.data_root.DataRoot:
  1. Explicit --data-dir CLI option
  2. TRIPLEDGER_DATA environment variable
  3. Current working directory
"""

# Days beyond this sequence position fold into the extra-distance bucket
TRIP_DAY_LIMIT = 10

# Subcategory labels of the machine-maintained line items
TRANSPORT_HIRE = "Transport hire"
SUPPORT_VEHICLE = "Support vehicle"
CATERING = "Catering"

DEFAULT_ACTOR = "Unknown"
DEFAULT_WORKSPACE = "sandbox"

# Seconds to wait after a parameter edit before recomputing auto items
DEFAULT_RECOMPUTE_DELAY = 0.3
