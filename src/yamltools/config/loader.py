"""Loading of configuration documents and secret backend configuration.

This module reads YAML documents into configuration trees and extracts the
secret backend configuration (the ``secrets`` subtree) from a merged tree.
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import SecretsConfigurationError
from .models import SecretsConfigModel, VaultConfigModel

logger = logging.getLogger(__name__)

SECRETS_KEY = "secrets"


def load_document(path: str | Path) -> dict[str, Any]:
    """Load a single YAML document.

    Args:
        path: Path to the YAML file

    Returns:
        The parsed tree; an empty file yields an empty tree.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid YAML or its top level is not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.debug(f"Loading configuration document: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Configuration document {path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def load_documents(paths: Iterable[str | Path]) -> list[dict[str, Any]]:
    """Load YAML documents in the given order (lowest precedence first)."""
    return [load_document(path) for path in paths]


def extract_secrets_config(tree: Mapping[str, Any]) -> SecretsConfigModel:
    """Build the secret backend configuration from a resolved tree.

    Raises:
        SecretsConfigurationError: If ``secrets`` is not a mapping or its vault
            section is invalid.
    """
    section = tree.get(SECRETS_KEY)
    if section is None:
        return SecretsConfigModel()
    if not isinstance(section, Mapping):
        raise SecretsConfigurationError(
            f"'{SECRETS_KEY}' must be a mapping, got {type(section).__name__}"
        )

    try:
        config = SecretsConfigModel.model_validate(dict(section))
    except ValidationError as e:
        raise SecretsConfigurationError(f"Invalid secrets configuration: {e}") from e

    logger.debug(f"Loaded secrets config: vault={'yes' if config.vault else 'no'}")
    return config


def extract_vault_config(tree: Mapping[str, Any]) -> VaultConfigModel | None:
    """Return the ``secrets.vault`` configuration of a tree, if any."""
    return extract_secrets_config(tree).vault
