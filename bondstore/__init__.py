"""BondStore: inventory ledger, crew distributions and monthly reports for a ship's bond store."""

__version__ = "0.1.0"
