"""Payments domain - Fee split calculation and Paystack settlement"""

__all__ = []
