"""
Module: capital_modules
Responsibility:
    Domain modules of the capital ledger engine: the chart of accounts,
    the investment lifecycle, shareholders and capital calls, financial
    reporting, and the procedure boundary that exposes them.

Architecture position:
    Modules layer.  Depends on capital_kernel, capital_engines and
    capital_config.  Nothing below this layer imports from it.
"""
