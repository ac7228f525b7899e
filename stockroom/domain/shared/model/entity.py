from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """Base class for domain entities (identity-bearing pydantic models)."""

    model_config = ConfigDict(validate_assignment=True)
