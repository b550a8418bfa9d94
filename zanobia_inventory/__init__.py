"""Inventory domain logic: products, variants, recipes, stock batches, validation and locking."""

__version__ = "0.1.0"