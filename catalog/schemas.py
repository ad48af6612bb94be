from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 255


def _scalar_to_str(value):
    # Numeric descriptions are stored as their text; bools and containers
    # still fail as non-strings.
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    return value


# --- Product ---

class ProductCreate(BaseModel):
    name: str = Field(max_length=NAME_MAX_LENGTH)
    price: Decimal
    description: str = Field(max_length=DESCRIPTION_MAX_LENGTH)
    stock: int

    _description_text = field_validator("description", mode="before")(_scalar_to_str)


class ProductUpdate(BaseModel):
    """
    Partial update payload.

    Omitted fields stay out of ``model_fields_set`` and are left unchanged;
    a field sent as ``null`` is present and rejected as required.
    """

    name: str | None = Field(None, max_length=NAME_MAX_LENGTH)
    price: Decimal | None = None
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    stock: int | None = None

    _description_text = field_validator("description", mode="before")(_scalar_to_str)

    @field_validator("name", "price", "description", "stock", mode="before")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise PydanticCustomError("required", "Field required")
        return value

    def changes(self) -> dict:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class ProductResponse(BaseModel):
    id: int
    name: str
    description: str
    price: float
    stock: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Message bodies ---

class MessageResponse(BaseModel):
    message: str


class ValidationErrorResponse(MessageResponse):
    errors: dict[str, list[str]]


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_products: int
    total_stock: int
    cache_info: dict = {}
