"""Declarative reconciliation of network device resources."""

__version__ = "0.1.0"
