"""Service modules"""
from .auction_service import AuctionService
from .dashboard_service import DashboardService
from .enrichment import DomainEnricher
from .loan_service import LoanService
from .marketplace import Marketplace
from .pool_service import PoolService
from .query import AuctionQuery, LoanQuery, PoolQuery
from .validation import InvalidInputError

__all__ = [
    "AuctionQuery",
    "AuctionService",
    "DashboardService",
    "DomainEnricher",
    "InvalidInputError",
    "LoanQuery",
    "LoanService",
    "Marketplace",
    "PoolQuery",
    "PoolService",
]
