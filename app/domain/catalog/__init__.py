"""Catalog domain - Services offered by providers"""

__all__ = []
