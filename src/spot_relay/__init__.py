"""Spot exchange relay with break-even and P&L analytics."""

__version__ = "0.1.0"
