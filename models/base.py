"""
Base schemas for all models.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class CamelSchema(BaseModel):
    """
    Base for API payloads exchanged with the dashboard.

    Fields are snake_case in Python and camelCase on the wire
    (previewId, errorCount, rowNumber, ...). Either name is accepted on input.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
