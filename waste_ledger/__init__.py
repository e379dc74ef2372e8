"""Reconcile AI-extracted waste movement records into a spreadsheet ledger."""

__version__ = "0.3.0"
