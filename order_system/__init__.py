"""
Order System - Composable Orders, Swappable Payments, Safe Stock

This package demonstrates three cooperating mechanisms:
1. Order pipeline: a base purchase wrapped by add-on services (gift wrap,
   express shipping, greeting card), priced additively
2. Payment settlement: interchangeable payment strategies behind one context
   that always reports a uniform outcome
3. Inventory ledger: a shared stock table with atomic reserve/release that
   never oversells under concurrent checkouts

Flow: price -> pay -> reserve stock. Only a paid order touches the ledger.
"""

__version__ = "1.0.0"
