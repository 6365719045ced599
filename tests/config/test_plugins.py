"""Tests for the decrypter plugin contract and registry."""

import pytest

from yamltools.config import (
    Decrypter,
    DecrypterRegistry,
    DescriptorSyntaxError,
    NoopDecrypter,
    UnknownDecrypterError,
    is_encrypted,
)
from yamltools.config.plugins import parse_backend_name, parse_descriptor_fields


class StaticDecrypter(Decrypter):
    """Decrypter returning values from a dictionary, keyed by ``k``."""

    def __init__(self, encrypted_secret: str, values: dict[str, str]):
        super().__init__(encrypted_secret)
        self.values = values

    def decrypt(self) -> str:
        fields = parse_descriptor_fields(self.encrypted_secret, {"k"})
        return self.values[fields["k"]]


class TestDescriptorParsing:
    """Test the shared descriptor grammar."""

    def test_is_encrypted(self):
        assert is_encrypted("encrypted:vault!e:secret!n:app!k:key")
        assert not is_encrypted("plain")
        assert not is_encrypted(42)
        assert not is_encrypted(None)

    def test_parse_backend_name(self):
        assert parse_backend_name("encrypted:vault!e:secret") == "vault"
        assert parse_backend_name("encrypted:noop!v:x") == "noop"

    def test_parse_backend_name_missing(self):
        with pytest.raises(DescriptorSyntaxError, match="Missing secret backend"):
            parse_backend_name("encrypted:!e:secret")

    def test_fields_are_order_independent(self):
        fields = parse_descriptor_fields("encrypted:vault!k:key!e:secret!n:app", {"e", "n", "k"})
        assert fields == {"e": "secret", "n": "app", "k": "key"}

    def test_values_may_contain_colons(self):
        fields = parse_descriptor_fields("encrypted:noop!v:http://host:8080", {"v"})
        assert fields == {"v": "http://host:8080"}

    def test_too_few_segments(self):
        """Test that a descriptor without '!' separators is rejected."""
        with pytest.raises(DescriptorSyntaxError, match="Illegal format"):
            parse_descriptor_fields("badformat", {"v"})

    def test_segment_without_colon(self):
        with pytest.raises(DescriptorSyntaxError, match="key-value pair"):
            parse_descriptor_fields("encrypted:noop!novalue", {"v"})

    def test_unknown_key(self):
        with pytest.raises(DescriptorSyntaxError, match="Invalid key"):
            parse_descriptor_fields("encrypted:noop!x:1", {"v"})


class TestDecrypterRegistry:
    """Test backend registration and dispatch."""

    def test_dispatches_to_registered_factory(self):
        """Test that the backend name selects the factory."""
        registry = DecrypterRegistry()
        registry.register("static", lambda descriptor: StaticDecrypter(descriptor, {"db": "pw"}))

        decrypter = registry.get_decrypter("encrypted:static!k:db")

        assert isinstance(decrypter, StaticDecrypter)
        assert decrypter.decrypt() == "pw"
        assert registry.decrypt("encrypted:static!k:db") == "pw"

    def test_each_descriptor_gets_a_fresh_decrypter(self):
        registry = DecrypterRegistry()
        registry.register("noop", NoopDecrypter)

        first = registry.get_decrypter("encrypted:noop!v:a")
        second = registry.get_decrypter("encrypted:noop!v:a")

        assert first is not second

    def test_unregistered_backend(self):
        """Test that an unknown backend is a hard error."""
        registry = DecrypterRegistry()
        with pytest.raises(UnknownDecrypterError, match="'s3'"):
            registry.decrypt("encrypted:s3!b:bucket!f:file")

    def test_register_replaces_and_unregister(self):
        registry = DecrypterRegistry()
        registry.register("noop", NoopDecrypter)
        registry.register("noop", lambda d: StaticDecrypter(d, {"x": "y"}))
        assert registry.list_decrypters() == ["noop"]
        assert registry.decrypt("encrypted:noop!k:x") == "y"

        registry.unregister("noop")
        assert registry.list_decrypters() == []


class TestNoopDecrypter:
    """Test the noop backend."""

    def test_returns_embedded_value(self):
        assert NoopDecrypter("encrypted:noop!v:mynotsosecretstring").decrypt() == "mynotsosecretstring"

    def test_missing_value(self):
        with pytest.raises(DescriptorSyntaxError, match="Missing value key"):
            NoopDecrypter("encrypted:noop!encrypted:noop").decrypt()
