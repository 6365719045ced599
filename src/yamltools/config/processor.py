"""
Configuration resolution engine.

This module provides the ResolverEngine class that:
1. Merges layered configuration documents
2. Resolves ``${...}`` placeholders against the merged tree and the environment
3. Replaces ``encrypted:...`` secret descriptors with their plaintext values
"""

import logging
import os
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any

from .decrypters import NoopDecrypter, VaultDecrypter
from .errors import ConfigResolutionError
from .loader import extract_secrets_config, load_documents
from .merge import merge
from .models import SecretsConfigModel
from .placeholders import PlaceholderResolver, has_placeholders
from .plugins import ENCRYPTED_PREFIX, DecrypterFactory, DecrypterRegistry, is_encrypted

logger = logging.getLogger(__name__)


def backend_label(descriptor: str) -> str:
    """Best-effort backend name of a descriptor, for logs and tracking."""
    return descriptor.split("!", 1)[0].removeprefix(ENCRYPTED_PREFIX)


@dataclass
class ResolvedReference:
    """
    Record of one secret descriptor handled during a resolution pass.

    Plaintext values are never recorded.

    Attributes:
        path: Path to the value in the configuration as a list of keys/indices.
              For example, ['services', 'echo', 'slackApiKey'].
        backend: Name of the secret backend (e.g., "vault", "noop").
        resolved_at: Unix timestamp when the decryption finished.
        error: Error message if decryption failed, None if successful.
    """

    path: list[str | int]
    backend: str
    resolved_at: float
    error: str | None = None


class ResolverEngine:
    """
    Main engine for layered configuration resolution.

    ## Usage

    ```python
    from yamltools.config import ResolverEngine

    engine = ResolverEngine()
    resolved = engine.resolve(
        [defaults, overlay, local],
        environ={"DEFAULT_DNS_NAME": "example.com"},
    )
    ```

    Or straight from YAML files:

    ```python
    resolved = engine.resolve_files(["spinnaker.yml", "spinnaker-local.yml"])
    ```

    ## Secret backends

    ``vault`` and ``noop`` descriptors are handled out of the box. The Vault
    configuration is read from the ``secrets.vault`` subtree of the
    placeholder-resolved tree unless one is passed to the constructor. Other
    backends are added with a factory building a decrypter from a descriptor:

    ```python
    engine.register_decrypter("s3", partial(S3Decrypter, bucket_config=config))
    ```

    ## Error Handling

    Resolution is fail-closed: the first unresolved placeholder or failed
    secret aborts the call and the error propagates. No partially resolved
    tree is ever returned.

    ## Thread Safety

    ResolverEngine instances are not thread-safe. Create separate instances
    for concurrent use.
    """

    def __init__(
        self,
        secrets_config: SecretsConfigModel | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        """
        Initialize the ResolverEngine.

        Args:
            secrets_config: Secret backend configuration. If None, it is read
                from the ``secrets`` subtree of each resolved configuration.
            environ: Default environment for placeholder fallbacks and token
                lookups. If None, uses ``os.environ``.
        """
        self.secrets_config = secrets_config
        self.environ = environ
        self._custom_factories: dict[str, DecrypterFactory] = {}
        self._resolved_references: list[ResolvedReference] = []
        self._current_config_path: list[str | int] = []

    def register_decrypter(self, name: str, factory: DecrypterFactory) -> None:
        """
        Register a decrypter factory for a secret backend.

        Custom factories take precedence over the built-in ones of the same name.

        Args:
            name: Backend name as it appears in descriptors (``encrypted:<name>!...``)
            factory: Callable building a Decrypter from a descriptor string
        """
        self._custom_factories[name] = factory
        logger.debug(f"Registered custom decrypter: {name}")

    def list_decrypters(self) -> list[str]:
        """List the names of all backends available to this engine."""
        return self.build_registry(SecretsConfigModel()).list_decrypters()

    def build_registry(
        self,
        secrets_config: SecretsConfigModel,
        environ: Mapping[str, str] | None = None,
    ) -> DecrypterRegistry:
        """Build the decrypter registry for one resolution pass."""
        environ = self._environ(environ)
        registry = DecrypterRegistry()
        registry.register(
            VaultDecrypter.name,
            partial(VaultDecrypter, vault_config=secrets_config.vault, environ=environ),
        )
        registry.register(NoopDecrypter.name, NoopDecrypter)
        for name, factory in self._custom_factories.items():
            registry.register(name, factory)
        return registry

    def resolve(
        self,
        documents: Sequence[Mapping[str, Any] | None],
        environ: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Merge, resolve placeholders and decrypt secrets.

        Args:
            documents: Parsed configuration trees, lowest precedence first
            environ: Environment overrides; defaults to the engine's environment

        Returns:
            A new, fully resolved configuration tree

        Raises:
            ConfigResolutionError: If any placeholder or secret fails to resolve
        """
        environ = self._environ(environ)
        self._resolved_references.clear()

        merged = merge(documents)
        logger.debug(f"Merged {len(documents)} configuration documents")

        resolved = PlaceholderResolver(merged, environ).resolve()

        secrets_config = self.secrets_config
        if secrets_config is None:
            secrets_config = extract_secrets_config(resolved)
        registry = self.build_registry(secrets_config, environ)
        return self.decrypt_secrets(resolved, registry)

    def resolve_files(
        self,
        paths: Iterable[str | Path],
        environ: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Load YAML files in order and resolve them."""
        return self.resolve(load_documents(paths), environ)

    def decrypt_secrets(self, tree: dict[str, Any], registry: DecrypterRegistry) -> dict[str, Any]:
        """Replace every secret descriptor of tree with its plaintext value."""
        self._current_config_path = []
        return self._decrypt_value(tree, registry)

    def _decrypt_value(self, value: Any, registry: DecrypterRegistry) -> Any:
        if isinstance(value, dict):
            decrypted = {}
            for key, item in value.items():
                self._current_config_path.append(key)
                decrypted[key] = self._decrypt_value(item, registry)
                self._current_config_path.pop()
            return decrypted
        elif isinstance(value, list):
            decrypted_list = []
            for i, item in enumerate(value):
                self._current_config_path.append(i)
                decrypted_list.append(self._decrypt_value(item, registry))
                self._current_config_path.pop()
            return decrypted_list
        elif is_encrypted(value):
            return self._decrypt_descriptor(value, registry)
        else:
            return value

    def _decrypt_descriptor(self, descriptor: str, registry: DecrypterRegistry) -> str:
        path = self._current_config_path.copy()
        backend = backend_label(descriptor)
        try:
            plaintext = registry.decrypt(descriptor)
        except ConfigResolutionError as e:
            location = ".".join(str(segment) for segment in path)
            error_msg = f"Failed to decrypt {backend} secret at '{location}': {e}"
            self._resolved_references.append(
                ResolvedReference(
                    path=path, backend=backend, resolved_at=time.time(), error=error_msg
                )
            )
            logger.warning(error_msg)
            raise

        self._resolved_references.append(
            ResolvedReference(path=path, backend=backend, resolved_at=time.time())
        )
        return plaintext

    def get_resolved_references(self) -> list[ResolvedReference]:
        """
        Get the secret decryptions of the last resolution.

        Returns:
            List of ResolvedReference objects
        """
        return self._resolved_references.copy()

    def get_failed_references(self) -> list[ResolvedReference]:
        """Get the decryptions of the last resolution that failed."""
        return [ref for ref in self._resolved_references if ref.error is not None]

    def find_references(self, config: Mapping[str, Any]) -> list[tuple[list[str | int], str, str]]:
        """
        Find all placeholders and secret descriptors without resolving them.

        Args:
            config: Configuration tree to scan

        Returns:
            List of tuples (path, original_value, kind) where kind is
            ``placeholder`` or ``secret:<backend>``
        """
        references = []

        def _scan_config(obj: Any, path: list[str | int]) -> None:
            if isinstance(obj, Mapping):
                for key, value in obj.items():
                    _scan_config(value, path + [key])
            elif isinstance(obj, list):
                for i, item in enumerate(obj):
                    _scan_config(item, path + [i])
            elif is_encrypted(obj):
                references.append((path, obj, f"secret:{backend_label(obj)}"))
            elif has_placeholders(obj):
                references.append((path, obj, "placeholder"))

        _scan_config(config, [])
        return references

    def _environ(self, environ: Mapping[str, str] | None) -> Mapping[str, str]:
        if environ is not None:
            return environ
        if self.environ is not None:
            return self.environ
        return os.environ


def resolve(
    documents: Sequence[Mapping[str, Any] | None],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Resolve layered configuration documents with a default engine."""
    return ResolverEngine().resolve(documents, environ)
