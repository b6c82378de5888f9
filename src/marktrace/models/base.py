"""
Base model shared by all marktrace models.
"""

from pydantic import BaseModel, ConfigDict


class MarkTraceBaseModel(BaseModel):
    """
    Base model for marktrace.
    Common configuration and stricter validation.
    """

    model_config = ConfigDict(
        # Validate values on assignment
        validate_assignment=True,
        # Use enum values
        use_enum_values=True,
        # Prevent extra fields
        extra="forbid",
    )
