"""
Capital Kernel

The double-entry core of the capital ledger engine:
- Balanced journal entries with running account balances
- Collision-free entry numbering per source type
- Opportunistic posting through injectable ledger sinks
- Caller-owned transactions (services flush, never commit)
"""

__version__ = "0.1.0"
