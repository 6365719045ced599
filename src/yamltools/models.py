"""Base Pydantic models for yamltools.

This module provides the base model class that all yamltools Pydantic models
should inherit from. It establishes consistent configuration across all models:

- Strict field validation (no extra fields allowed)
- Immutable instances, so a configuration loaded once can be shared freely

Example:
    >>> from yamltools.models import YamlToolsBaseModel
    >>>
    >>> class MyModel(YamlToolsBaseModel):
    ...     name: str
    >>>
    >>> MyModel(name="test").model_dump()
    {'name': 'test'}
"""

from pydantic import BaseModel, ConfigDict


class YamlToolsBaseModel(BaseModel):
    """Base model for all yamltools Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
