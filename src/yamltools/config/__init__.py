"""
Layered configuration resolution with secret decryption.

The yamltools.config module turns an ordered list of configuration documents
into one fully resolved configuration tree:

1. **Merge**: documents are deep-merged, later ones overriding earlier ones
2. **Placeholders**: ``${dotted.path}`` and ``${path:default}`` tokens are
   substituted from the merged tree, the environment, or their default
3. **Secrets**: ``encrypted:<backend>!...`` descriptors are replaced with values
   fetched by the decrypter registered for the backend

## Quick Start

```python
from yamltools.config import ResolverEngine

engine = ResolverEngine()
resolved = engine.resolve_files(
    ["spinnaker.yml", "spinnaker-local.yml"],
    environ={"DEFAULT_DNS_NAME": "example.com"},
)
```

## Secret backends

Vault secrets are configured in the documents themselves:

```yaml
secrets:
  vault:
    enabled: true
    url: https://vault.example.com
    authMethod: TOKEN   # TOKEN, KUBERNETES or USERPASS

services:
  echo:
    slackApiKey: encrypted:vault!e:secret!n:echo/slack!k:apiKey
```

Custom backends plug in through ``ResolverEngine.register_decrypter``.

## Error Handling

Every failure raises a ConfigResolutionError subclass and aborts resolution.
No partially resolved configuration is ever returned.
"""

from .decrypters import NoopDecrypter, VaultDecrypter, VaultSecret, parse_vault_secret
from .errors import (
    ConfigResolutionError,
    CyclicPlaceholderError,
    DescriptorSyntaxError,
    PlaceholderResolutionError,
    PlaceholderSyntaxError,
    ReferenceSyntaxError,
    SecretAuthenticationError,
    SecretDecodeError,
    SecretError,
    SecretFetchError,
    SecretNotFoundError,
    SecretsConfigurationError,
    SecretStoreUnreachableError,
    UnknownAuthMethodError,
    UnknownDecrypterError,
    UnresolvedPlaceholderError,
)
from .loader import extract_secrets_config, extract_vault_config, load_document, load_documents
from .merge import merge
from .models import SecretsConfigModel, VaultAuthMethod, VaultConfigModel
from .placeholders import PlaceholderResolver, resolve_placeholders
from .plugins import Decrypter, DecrypterFactory, DecrypterRegistry, is_encrypted
from .processor import ResolvedReference, ResolverEngine, resolve

__all__ = [
    # Core classes
    "ResolverEngine",
    "ResolvedReference",
    "PlaceholderResolver",
    "Decrypter",
    "DecrypterFactory",
    "DecrypterRegistry",
    # Built-in decrypters
    "VaultDecrypter",
    "VaultSecret",
    "NoopDecrypter",
    # Models
    "SecretsConfigModel",
    "VaultConfigModel",
    "VaultAuthMethod",
    # Functions
    "resolve",
    "merge",
    "resolve_placeholders",
    "parse_vault_secret",
    "is_encrypted",
    "load_document",
    "load_documents",
    "extract_secrets_config",
    "extract_vault_config",
    # Errors
    "ConfigResolutionError",
    "SecretsConfigurationError",
    "UnknownDecrypterError",
    "ReferenceSyntaxError",
    "PlaceholderSyntaxError",
    "DescriptorSyntaxError",
    "PlaceholderResolutionError",
    "UnresolvedPlaceholderError",
    "CyclicPlaceholderError",
    "SecretError",
    "SecretAuthenticationError",
    "UnknownAuthMethodError",
    "SecretStoreUnreachableError",
    "SecretFetchError",
    "SecretNotFoundError",
    "SecretDecodeError",
]
