"""
Decrypters subpackage.

This subpackage contains the built-in decrypter implementations for the
secret backends yamltools ships with.
"""

from .noop import NoopDecrypter
from .vault import VaultDecrypter, VaultSecret, parse_vault_secret

__all__ = ["NoopDecrypter", "VaultDecrypter", "VaultSecret", "parse_vault_secret"]
