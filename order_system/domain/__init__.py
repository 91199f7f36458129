"""
Domain Layer - Pure Business Logic

This layer contains:
- Value objects (Money)
- The order pipeline (base order + add-on service decorations)
- The order lifecycle aggregate and its events

Key principle: ZERO dependencies on payment back-ends or the stock ledger.
Pricing can be tested without simulating a single payment.
"""
