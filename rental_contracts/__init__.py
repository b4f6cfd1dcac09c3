"""Rental contract lifecycle: status evaluation, backend client and live refresh"""

__version__ = "0.1.0"
