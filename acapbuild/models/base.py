"""Base model for acapbuild Pydantic models."""

from pydantic import BaseModel, ConfigDict


class AcapBaseModel(BaseModel):
    """Base model class with consistent validation settings.

    Unknown keys are ignored so that newer metadata tables keep loading with
    older releases of the tool.
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )
