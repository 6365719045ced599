"""
Global pytest configuration and fixtures.
"""

import base64
from pathlib import Path

import pytest

from yamltools.config import SecretsConfigModel, VaultConfigModel

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def token_vault_config() -> VaultConfigModel:
    """An enabled Vault configuration using TOKEN auth."""
    return VaultConfigModel(enabled=True, url="https://vault.example.com", auth_method="TOKEN")


@pytest.fixture
def token_secrets_config(token_vault_config) -> SecretsConfigModel:
    return SecretsConfigModel(vault=token_vault_config)


@pytest.fixture
def b64():
    """Encode a string the way base64-flagged secrets are stored."""

    def _encode(value: str) -> str:
        return base64.b64encode(value.encode("utf-8")).decode("ascii")

    return _encode
