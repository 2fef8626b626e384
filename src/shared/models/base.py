"""Base model configuration for all Pydantic models.

Conventions:
- All timestamps are ISO 8601 format with timezone (UTC preferred)
- Python field names are snake_case, JSON field names are camelCase
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RegistryBaseModel(BaseModel):
    """Base model with common configuration.

    Models accept both snake_case and camelCase input and serialize with
    camelCase aliases when dumped with ``by_alias=True``.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=True,
        alias_generator=to_camel,
    )
