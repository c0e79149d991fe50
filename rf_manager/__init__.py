"""
RF Manager - Source Package

Bookkeeping for two trading accounts and the savings buckets fed by their
profits.

DESIGN PRINCIPLES:
1. The transaction ledger is the single source of truth
2. Every derived number is recomputed from the ledger, never patched
3. Rejected mutations change nothing
4. Every mutation is auditable and can be undone for a short window
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "RF Manager Team"
