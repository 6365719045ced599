"""
Exceptions raised while resolving configuration.

Every error derives from ConfigResolutionError, which is itself a ValueError so
callers that only catch ValueError keep working. The hierarchy mirrors the
stages of a resolution pass:

- configuration errors (secret backend disabled, unset or misconfigured)
- syntax errors (malformed placeholders or secret descriptors)
- resolution errors (unresolved or cyclic placeholders)
- authentication errors (missing credentials, failed login)
- transport errors (secret store unreachable)
- fetch and not-found errors (missing secret path or key)
"""


class ConfigResolutionError(ValueError):
    """Base class for all configuration resolution errors."""


class SecretsConfigurationError(ConfigResolutionError):
    """The secret backend configuration is missing, disabled or invalid."""


class UnknownDecrypterError(SecretsConfigurationError):
    """A secret descriptor names a backend with no registered decrypter."""


class ReferenceSyntaxError(ConfigResolutionError):
    """A placeholder or secret descriptor is malformed."""


class PlaceholderSyntaxError(ReferenceSyntaxError):
    pass


class DescriptorSyntaxError(ReferenceSyntaxError):
    pass


class PlaceholderResolutionError(ConfigResolutionError):
    """A placeholder could not be resolved to a value."""


class UnresolvedPlaceholderError(PlaceholderResolutionError):
    """No tree value, environment variable or default exists for a placeholder."""

    def __init__(self, path: str, message: str | None = None):
        self.path = path
        super().__init__(message or f"Unable to resolve placeholder '${{{path}}}'")


class CyclicPlaceholderError(PlaceholderResolutionError):
    """Placeholders reference each other in a loop."""

    def __init__(self, chain: list[str]):
        self.chain = chain
        super().__init__(f"Cyclic placeholder reference: {' -> '.join(chain)}")


class SecretError(ConfigResolutionError):
    """Base class for failures talking to a secret backend."""


class SecretAuthenticationError(SecretError):
    pass


class UnknownAuthMethodError(SecretAuthenticationError):
    def __init__(self, auth_method: str | None):
        self.auth_method = auth_method
        super().__init__(f"Unknown Vault secrets auth method: {auth_method!r}")


class SecretStoreUnreachableError(SecretError):
    def __init__(self, url: str | None):
        self.url = url
        super().__init__(
            f"Error fetching secret from vault - cannot reach secret store at {url}"
        )


class SecretFetchError(SecretError):
    pass


class SecretNotFoundError(SecretFetchError):
    pass


class SecretDecodeError(SecretError):
    pass
