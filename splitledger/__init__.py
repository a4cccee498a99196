"""
SplitLedger - Source Package

A single-user, in-memory expense splitting ledger: participants share
receipts, exclusions carve amounts out before splitting, and the result
exports as CSV or a fixed-width text report.

DESIGN PRINCIPLES:
1. Shares are derived, never stored
2. Fail early, fail visibly
3. No silent corrections
4. Every command is auditable
5. File I/O stays outside the ledger core
"""

__version__ = "1.0.0"
__author__ = "SplitLedger Team"
