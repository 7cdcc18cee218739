"""
Conga Sign developer sandbox.

Configure credentials for the Conga Sign eSignature API, list and manage
signature packages, and simulate the recipient signing flow against a
locally persisted mirror of the vendor's transactions.
"""

__version__ = "0.1.1"
