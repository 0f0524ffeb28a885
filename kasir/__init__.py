"""
Kasir POS: checkout and inventory ledgers for a small retail store.
"""

__version__ = "1.0.0"
