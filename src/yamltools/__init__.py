"""yamltools - layered YAML configuration with placeholders and secrets.

See ``yamltools.config`` for the resolution engine and ``yamltools.cli`` for
the command line interface.
"""

from yamltools.config import ResolverEngine, resolve
from yamltools.version import PACKAGE_VERSION

__all__ = ["ResolverEngine", "resolve", "PACKAGE_VERSION"]
