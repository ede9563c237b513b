# =============================================================================
# reports/__init__.py
# =============================================================================
# PURPOSE:
#   Report builders. Each takes records that were already loaded from the
#   database and returns a {success, data, ...} payload (see utils/envelope).
#   No database access happens in here.
# =============================================================================

from .payables import build_accounts_payable
from .receivables import build_accounts_receivable
from .commissions import build_commissions
from .profit_loss import build_profit_loss
from .calendar import build_calendar_view
