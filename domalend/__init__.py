"""DomaLend marketplace views derived from indexed on-chain events."""

__version__ = "0.1.0"
