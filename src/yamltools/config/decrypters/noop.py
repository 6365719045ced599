"""
Noop decrypter.

Returns the value embedded in descriptors like ``encrypted:noop!v:plaintext``.
Useful for local profiles and test fixtures that should exercise the secret
pass without a real secret store.
"""

from ..errors import DescriptorSyntaxError
from ..plugins import Decrypter, parse_descriptor_fields


class NoopDecrypter(Decrypter):
    """Decrypter for ``encrypted:noop!v:<value>`` descriptors."""

    name = "noop"

    def decrypt(self) -> str:
        fields = parse_descriptor_fields(self.encrypted_secret, {"v"})
        if "v" not in fields:
            raise DescriptorSyntaxError(
                f"Missing value key 'v' in {self.encrypted_secret!r}"
            )
        return fields["v"]
