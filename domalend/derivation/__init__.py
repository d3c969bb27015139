"""Pure derivation layer — event grouping, status resolution, pricing."""
from .auctions import calc_current_price, derive_auction, format_time_remaining
from .grouping import group_events
from .loans import derive_loan, derive_loans, resolve_loan_status
from .pools import derive_pool, replay_liquidity
from .timestamps import normalize_timestamp, to_iso

__all__ = [
    "calc_current_price",
    "derive_auction",
    "derive_loan",
    "derive_loans",
    "derive_pool",
    "format_time_remaining",
    "group_events",
    "normalize_timestamp",
    "replay_liquidity",
    "resolve_loan_status",
    "to_iso",
]
