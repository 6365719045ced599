"""Installed version of yamltools."""

from importlib.metadata import PackageNotFoundError, version

__all__ = ["PACKAGE_VERSION"]

try:
    PACKAGE_VERSION = version("yamltools")
except PackageNotFoundError:
    PACKAGE_VERSION = "unknown"
