"""
Vault decrypter.

This module provides the VaultDecrypter class for resolving HashiCorp Vault
secret descriptors like ``encrypted:vault!e:secret!n:myapp/creds!k:password``.

Descriptor keys:

- ``e``: secrets engine mount (``secret``)
- ``n``: path of the secret within the engine (``myapp/creds``)
- ``k``: key to read from the secret (``password``)
- ``b``: optional flag, when true the value is base64-decoded

Both K/V v1 and v2 engines are supported. Reads start at ``<engine>/<path>``;
when Vault answers with a warning that the path is invalid for a versioned
engine, the read is repeated at ``<engine>/data/<path>`` and the engine is
remembered as versioned for the lifetime of the decrypter.
"""

import base64
import binascii
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests

from ..errors import (
    DescriptorSyntaxError,
    SecretAuthenticationError,
    SecretDecodeError,
    SecretFetchError,
    SecretNotFoundError,
    SecretsConfigurationError,
    SecretStoreUnreachableError,
    UnknownAuthMethodError,
)
from ..models import DEFAULT_USER_AUTH_PATH, VaultAuthMethod, VaultConfigModel
from ..plugins import Decrypter, parse_descriptor_fields

logger = logging.getLogger(__name__)

VERSIONED_KV_WARNING = "Invalid path for a versioned K/V secrets engine"
TRUTHY_FLAGS = ("true", "1", "yes")


@dataclass(frozen=True)
class VaultSecret:
    """A parsed Vault secret descriptor."""

    engine: str
    path: str
    key: str
    base64_encoded: bool = False

    def read_path(self, versioned: bool = False) -> str:
        if versioned:
            return f"{self.engine}/data/{self.path}"
        return f"{self.engine}/{self.path}"


def parse_vault_secret(encrypted_secret: str) -> VaultSecret:
    """Parse a Vault secret descriptor.

    Raises:
        DescriptorSyntaxError: If the descriptor is malformed, has unknown keys,
            or misses one of the engine, path or key fields.
    """
    fields = parse_descriptor_fields(encrypted_secret, {"e", "n", "k", "b"})
    missing = [name for name in ("e", "n", "k") if not fields.get(name)]
    if missing:
        raise DescriptorSyntaxError(
            f"Missing required keys {', '.join(missing)} in {encrypted_secret!r}"
        )
    return VaultSecret(
        engine=fields["e"],
        path=fields["n"],
        key=fields["k"],
        base64_encoded=fields.get("b", "").lower() in TRUTHY_FLAGS,
    )


class VaultDecrypter(Decrypter):
    """Decrypter for ``encrypted:vault!...`` descriptors.

    The decrypter caches the Vault token it obtained and the set of engines
    detected as K/V v2. If a read fails while using a token cached before the
    current call, the token is refreshed and the read retried once.
    """

    name = "vault"

    def __init__(
        self,
        encrypted_secret: str,
        vault_config: VaultConfigModel | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        super().__init__(encrypted_secret)
        self.vault_config = vault_config
        self.environ = os.environ if environ is None else environ
        self._token: str | None = vault_config.token if vault_config else None
        self._kv2_engines: set[str] = set()

    def decrypt(self) -> str:
        config = self.validate_config()
        secret = parse_vault_secret(self.encrypted_secret)

        token_was_cached = self._token is not None
        if not token_was_cached:
            self._token = self.fetch_token()

        try:
            value = self.fetch_secret(secret)
        except (SecretFetchError, SecretStoreUnreachableError) as e:
            if not token_was_cached:
                raise
            # The cached token may have expired; get a new one and try again
            logger.debug(
                f"Retrying read of {secret.read_path()} at {config.url} with a fresh token: {e}"
            )
            self._token = None
            self._token = self.fetch_token()
            value = self.fetch_secret(secret)

        if secret.base64_encoded:
            return self._decode_base64(secret, value)
        return value

    def validate_config(self) -> VaultConfigModel:
        config = self.vault_config
        if config is None:
            raise SecretsConfigurationError(
                "Vault configuration error - vault secrets not configured (secrets.vault)"
            )
        if not config.enabled:
            raise SecretsConfigurationError("Vault configuration error - vault secrets disabled")
        if not config.auth_method:
            raise SecretsConfigurationError("Vault configuration error - auth method required")
        if not config.url:
            raise SecretsConfigurationError("Vault configuration error - vault url required")
        return config

    def fetch_token(self) -> str:
        """Obtain a Vault client token using the configured auth method."""
        config = self.validate_config()
        method = config.auth_method

        if method == VaultAuthMethod.TOKEN.value:
            token = self.environ.get(config.token_env)
            if not token:
                raise SecretAuthenticationError(
                    f"Error fetching vault token - {config.token_env} environment variable not set"
                )
            return token

        if method == VaultAuthMethod.KUBERNETES.value:
            if not config.path or not config.role:
                raise SecretsConfigurationError(
                    "Vault configuration error - path and role both required for Kubernetes auth method"
                )
            return self._kubernetes_login(config)

        if method == VaultAuthMethod.USERPASS.value:
            if not config.username or not config.password:
                raise SecretsConfigurationError(
                    "Vault configuration error - username and password both required for userpass auth method"
                )
            return self._userpass_login(config)

        raise UnknownAuthMethodError(method)

    def _kubernetes_login(self, config: VaultConfigModel) -> str:
        token_path = Path(config.service_account_token_path)
        try:
            jwt = token_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise SecretAuthenticationError(
                f"Error reading service account token from {token_path}: {e}"
            ) from e

        client = self._create_client()
        try:
            response = client.auth.kubernetes.login(
                role=config.role, jwt=jwt, mount_point=config.path
            )
        except Exception as e:
            raise SecretAuthenticationError(
                f"Error logging into vault at auth/{config.path}/login using kubernetes auth: {e}"
            ) from e
        return self._client_token(response, "kubernetes")

    def _userpass_login(self, config: VaultConfigModel) -> str:
        mount_point = config.user_auth_path or DEFAULT_USER_AUTH_PATH
        client = self._create_client()
        try:
            response = client.auth.userpass.login(
                username=config.username,
                password=config.password,
                mount_point=mount_point,
            )
        except Exception as e:
            raise SecretAuthenticationError(
                f"Error logging into vault at auth/{mount_point}/login using userpass auth: {e}"
            ) from e
        return self._client_token(response, "userpass")

    def _client_token(self, response: Any, method: str) -> str:
        auth = response.get("auth") if isinstance(response, dict) else None
        token = auth.get("client_token") if isinstance(auth, dict) else None
        if not token:
            raise SecretAuthenticationError(
                f"Vault {method} login returned no client token"
            )
        return token

    def fetch_secret(self, secret: VaultSecret) -> str:
        """Read the secret's key from Vault using the cached token."""
        client = self._create_client(self._token)

        path = secret.read_path(versioned=secret.engine in self._kv2_engines)
        response = self._read(client, path)

        if response and self._has_versioned_kv_warning(response):
            path = secret.read_path(versioned=True)
            logger.debug(f"Engine {secret.engine} is a versioned K/V engine, reading {path}")
            response = self._read(client, path)
            if response is None:
                raise SecretNotFoundError(f"Couldn't find vault path {path!r}")
            self._kv2_engines.add(secret.engine)

        if response is None:
            raise SecretNotFoundError(f"Couldn't find vault path {path!r}")

        data = response.get("data")
        if not isinstance(data, dict):
            raise SecretNotFoundError(f"No secret data at vault path {path!r}")
        # K/V v2 nests the secret one level deeper
        if isinstance(data.get("data"), dict):
            data = data["data"]

        value = data.get(secret.key)
        if not isinstance(value, str):
            raise SecretNotFoundError(
                f"Error fetching key {secret.key!r} from vault path {path!r}"
            )
        return value

    def _read(self, client: Any, path: str) -> dict[str, Any] | None:
        """Read a path, translating transport failures into clear errors.

        Reads go through the client's adapter rather than ``client.read`` so
        that the body of a 404 is still available: Vault reports a K/V v1 read
        against a versioned engine as a 404 whose warnings name the problem.
        """
        import hvac

        url = self.vault_config.url if self.vault_config else None
        try:
            response = client.adapter.get(f"/v1/{path}")
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise SecretStoreUnreachableError(url) from e
        except hvac.exceptions.InvalidPath as e:
            if e.json is None:
                raise SecretStoreUnreachableError(url) from e
            if isinstance(e.json, dict) and self._has_versioned_kv_warning(e.json):
                return e.json
            return None
        except hvac.exceptions.VaultError as e:
            # No JSON body means something other than Vault answered
            if e.json is None:
                raise SecretStoreUnreachableError(url) from e
            raise SecretFetchError(f"Error fetching secret from vault at {path!r}: {e}") from e

        if response is None or isinstance(response, dict):
            return response

        # hvac hands back the raw response when the body is not JSON, which
        # happens when a proxy or load balancer answers instead of Vault
        logger.debug(
            f"Non-JSON response from {url} for {path}: "
            f"status={getattr(response, 'status_code', None)} "
            f"content-type={getattr(response, 'headers', {}).get('Content-Type')}"
        )
        raise SecretStoreUnreachableError(url)

    def _has_versioned_kv_warning(self, response: dict[str, Any]) -> bool:
        warnings = response.get("warnings") or []
        return any(VERSIONED_KV_WARNING in warning for warning in warnings)

    def _decode_base64(self, secret: VaultSecret, value: str) -> str:
        try:
            return base64.b64decode(value, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise SecretDecodeError(
                f"Error base64-decoding key {secret.key!r} from vault path {secret.read_path()!r}: {e}"
            ) from e

    def _create_client(self, token: str | None = None) -> Any:
        """Create a Vault client bound to the configured address."""
        try:
            import hvac
        except ImportError:
            raise ImportError(
                "hvac package is required for Vault support. Install with: pip install hvac"
            )

        config = self.validate_config()
        return hvac.Client(url=config.url, token=token, namespace=config.namespace)
