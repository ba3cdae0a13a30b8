"""
Meluribook - Ledger Core

The accounting core of a small-business finance app: a double-entry
ledger posting engine plus a country-specific tax estimation dispatcher.

DESIGN PRINCIPLES:
1. Debits always equal credits - unbalanced entries never reach storage
2. Fail early, fail visibly
3. A journal entry is written with all of its lines or not at all
4. Tax estimation never blocks posting
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Meluribook Team"
