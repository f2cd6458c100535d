"""
Core modules for TokenLoyalty.

This package contains the loyalty accounting kernel: program registry,
points conversion, ledger, mock wallet and the session command API.
"""
