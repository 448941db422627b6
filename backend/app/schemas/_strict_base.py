"""Schema baselines: strict request DTOs and camelCase response DTOs."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictModel(BaseModel):
    """Neutral strict base for DTOs with a fixed contract."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class StrictRequestModel(StrictModel):
    """Request DTO base that always forbids unexpected fields."""

    # Clients may send either the alias or the field name.
    model_config = ConfigDict(extra="forbid", validate_assignment=True, populate_by_name=True)


class CamelResponseModel(BaseModel):
    """Response DTO base serialised with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
