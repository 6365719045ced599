"""Command line interface for yamltools."""
