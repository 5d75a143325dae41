"""
household_recon
===============
Shared-expense reconciliation for a two-person household: billing-cycle
assignment, invoice payment splits and duplicate review of imported
statement transactions.
"""

__version__ = "0.1.0"
