"""
Configuration package for the hostel ledger service.

Holds environment settings and logging configuration.
"""

from hostel_ledger.config.settings import Settings, get_settings, settings

__all__ = ['Settings', 'get_settings', 'settings']
