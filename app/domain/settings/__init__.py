"""Settings domain - Platform configuration and fee settings"""

__all__ = []
