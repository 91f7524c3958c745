"""Reconciliation core: pure functions over already-loaded records, no I/O."""
