"""runtime constants, a few overridable from the environment"""

import os
from decimal import Decimal
from pathlib import Path

# storage
DATA_DIR = Path(os.environ.get("BISTRO_POS_DATA_DIR", "."))
MENU_FILE = DATA_DIR / "menu_data.txt"
SALES_FILE = DATA_DIR / "sales_data.txt"
FIELD_DELIMITER = "|"

# display
CURRENCY_SYMBOL = "$"
TOP_ITEMS_LIMIT = 10

# diagnostics
LOG_LEVEL = os.environ.get("BISTRO_POS_LOG_LEVEL", "WARNING").upper()
LOG_FILE = os.environ.get("BISTRO_POS_LOG_FILE") or None

# limits
MAX_PRICE = Decimal("100000")
MAX_QUANTITY = 1000
