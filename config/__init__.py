# =============================================================================
# config/__init__.py
# =============================================================================
# PURPOSE:
#   Makes 'config' a package and re-exports every setting, so other files
#   can write:
#       from config import DB_PATH, CURRENCY_SYMBOLS
#   instead of:
#       from config.settings import DB_PATH, CURRENCY_SYMBOLS
# =============================================================================

from .settings import *
