"""
Plugin system for secret decrypters.

This module provides the Decrypter base class and the registry that maps a
secret backend name to the factory building decrypters for it. A secret
descriptor names its backend in its first segment:

    encrypted:vault!e:secret!n:myapp/creds!k:password
              ^^^^^

so adding a backend is a matter of registering a factory under a new name.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from .errors import DescriptorSyntaxError, UnknownDecrypterError

logger = logging.getLogger(__name__)

ENCRYPTED_PREFIX = "encrypted:"


def is_encrypted(value: object) -> bool:
    """Return True if value is a secret descriptor."""
    return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)


def parse_backend_name(descriptor: str) -> str:
    """Extract the backend name from a secret descriptor.

    The backend name is the part before the first ``!`` with the
    ``encrypted:`` marker removed.
    """
    head = descriptor.split("!", 1)[0]
    if head.startswith(ENCRYPTED_PREFIX):
        head = head[len(ENCRYPTED_PREFIX):]
    if not head:
        raise DescriptorSyntaxError(f"Missing secret backend name in {descriptor!r}")
    return head


def parse_descriptor_fields(descriptor: str, allowed_keys: set[str]) -> dict[str, str]:
    """Split a descriptor into its ``key:value`` fields.

    The leading ``encrypted:<backend>`` segment is skipped. Values may contain
    ``:``; only the first one separates key from value.

    Raises:
        DescriptorSyntaxError: If the descriptor has fewer than two segments,
            a segment lacks a ``:``, or a key is not in allowed_keys.
    """
    segments = descriptor.split("!")
    if len(segments) < 2:
        raise DescriptorSyntaxError(f"Illegal format: {descriptor!r}")

    fields: dict[str, str] = {}
    for segment in segments:
        key, sep, value = segment.partition(":")
        if not sep:
            raise DescriptorSyntaxError(
                f"Illegal format for key-value pair in {descriptor!r}: {segment}"
            )
        if key == "encrypted":
            continue
        if key not in allowed_keys:
            raise DescriptorSyntaxError(f"Invalid key in {descriptor!r}: {key}")
        fields[key] = value
    return fields


class Decrypter(ABC):
    """
    Abstract base class for secret decrypters.

    A decrypter is built from one secret descriptor and turns it into the
    plaintext value it refers to. Implementations receive everything else they
    need (backend configuration, environment) from the factory that builds them:

    ```python
    from functools import partial

    class StaticDecrypter(Decrypter):
        def __init__(self, encrypted_secret: str, values: dict[str, str]):
            super().__init__(encrypted_secret)
            self.values = values

        def decrypt(self) -> str:
            fields = parse_descriptor_fields(self.encrypted_secret, {"k"})
            return self.values[fields["k"]]

    engine.register_decrypter("static", partial(StaticDecrypter, values={"a": "b"}))
    ```

    Decrypters raise ConfigResolutionError subclasses on failure. They may keep
    state between calls (cached tokens and the like) but are not meant to be
    shared between threads.
    """

    def __init__(self, encrypted_secret: str):
        self.encrypted_secret = encrypted_secret

    @abstractmethod
    def decrypt(self) -> str:
        """Return the plaintext value of the secret."""


DecrypterFactory = Callable[[str], Decrypter]


class DecrypterRegistry:
    """Registry mapping secret backend names to decrypter factories."""

    def __init__(self):
        self._factories: dict[str, DecrypterFactory] = {}

    def register(self, name: str, factory: DecrypterFactory) -> None:
        """Register a factory, replacing any previous one for the same name."""
        if name in self._factories:
            logger.debug(f"Replacing decrypter for backend: {name}")
        self._factories[name] = factory
        logger.debug(f"Registered decrypter: {name}")

    def unregister(self, name: str) -> None:
        self._factories.pop(name, None)

    def list_decrypters(self) -> list[str]:
        """List all registered backend names."""
        return list(self._factories.keys())

    def get_decrypter(self, descriptor: str) -> Decrypter:
        """Build the decrypter for a secret descriptor."""
        name = parse_backend_name(descriptor)
        factory = self._factories.get(name)
        if factory is None:
            raise UnknownDecrypterError(
                f"No decrypter registered for secret backend '{name}'"
            )
        return factory(descriptor)

    def decrypt(self, descriptor: str) -> str:
        """Decrypt a descriptor with a fresh decrypter for its backend."""
        return self.get_decrypter(descriptor).decrypt()
