"""Payroll run calculation engine.

Computes payroll runs for a period: per-employee proration, concept
accumulation, statutory withholdings and employer cost, persisted as an
immutable, reconciled snapshot.
"""

__version__ = "0.1.0"
