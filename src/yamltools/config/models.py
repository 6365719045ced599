"""Pydantic models for secret backend configuration.

The secret backend configuration lives in the merged configuration tree itself,
under the ``secrets`` key:

```yaml
secrets:
  vault:
    enabled: true
    url: https://vault.example.com
    authMethod: KUBERNETES
    path: kubernetes
    role: my-role
```

It is read once, after placeholders have been resolved, and handed to the
decrypter factories. Instances are immutable.
"""

from enum import Enum

from pydantic import ConfigDict, Field

from yamltools.models import YamlToolsBaseModel

DEFAULT_TOKEN_ENV = "VAULT_TOKEN"
DEFAULT_USER_AUTH_PATH = "userpass"
SERVICE_ACCOUNT_TOKEN_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/token"


class VaultAuthMethod(str, Enum):
    """Auth methods supported by the Vault decrypter."""

    TOKEN = "TOKEN"
    KUBERNETES = "KUBERNETES"
    USERPASS = "USERPASS"


class VaultConfigModel(YamlToolsBaseModel):
    """Configuration for HashiCorp Vault secrets.

    Field names follow Python conventions; the YAML keys are the camelCase
    aliases (``authMethod``, ``userAuthPath``...). Both spellings are accepted.

    ``auth_method`` is kept as a plain string so an unsupported value surfaces
    as an UnknownAuthMethodError when a secret is decrypted, not as a load
    failure of the whole configuration.

    Attributes:
        enabled: Whether Vault secrets are enabled
        url: The Vault server address (e.g., https://vault.example.com)
        auth_method: One of TOKEN, KUBERNETES or USERPASS
        role: Vault role used by the KUBERNETES auth method
        path: Mount path of the Kubernetes auth backend
        username: Username for USERPASS auth
        password: Password for USERPASS auth
        user_auth_path: Mount path of the userpass auth backend
        namespace: Vault Enterprise namespace sent with every request
        token: An already-obtained client token, used until it stops working
        token_env: Environment variable holding the token for TOKEN auth
        service_account_token_path: Where the Kubernetes service account JWT is read from

    Example:
        >>> config = VaultConfigModel.model_validate(
        ...     {"enabled": True, "url": "https://vault.example.com", "authMethod": "TOKEN"}
        ... )
        >>> config.auth_method
        'TOKEN'
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    enabled: bool = False
    url: str | None = None
    auth_method: str | None = Field(default=None, alias="authMethod")
    role: str | None = None
    path: str | None = None
    username: str | None = None
    password: str | None = None
    user_auth_path: str | None = Field(default=None, alias="userAuthPath")
    namespace: str | None = None
    token: str | None = None
    token_env: str = Field(default=DEFAULT_TOKEN_ENV, alias="tokenEnv")
    service_account_token_path: str = Field(
        default=SERVICE_ACCOUNT_TOKEN_PATH, alias="serviceAccountTokenPath"
    )


class SecretsConfigModel(YamlToolsBaseModel):
    """Root of the ``secrets`` subtree.

    Subtrees for backends this package does not ship (s3, gcs...) are ignored
    so they can be consumed by their own decrypters.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    vault: VaultConfigModel | None = None
