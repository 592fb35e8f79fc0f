"""
Storage Layer.

This package handles all data persistence: the account store, the default
account seed, and the configuration file.
"""

from .accounts import AccountStore
from .config_manager import ConfigManager
from .default_account import read_default_account, seed_default_account_from_env

__all__ = [
    "AccountStore",
    "ConfigManager",
    "read_default_account",
    "seed_default_account_from_env",
]
