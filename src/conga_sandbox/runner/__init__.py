"""
CLI runner module.

Provides commands:
- init: Write default settings
- config: Show, set and reset connection configuration
- auth: Obtain, inspect and revoke the bearer token
- transactions: Mirror, create and drive signature packages
- reset: Reset configuration and transactions
"""

from .main import build_services, create_cli, main

__all__ = [
    "build_services",
    "create_cli",
    "main",
]
