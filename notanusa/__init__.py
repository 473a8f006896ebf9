"""
NotaNusa - Source Package

Bookkeeping for small businesses (UMKM): income and expense
transactions, categories, debts and receivables, reports and analytics.

DESIGN PRINCIPLES:
1. Storage and authorization belong to the backend (row-level security)
2. Aggregation is pure and deterministic
3. Fail visibly, never crash a page
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "NotaNusa Team"
