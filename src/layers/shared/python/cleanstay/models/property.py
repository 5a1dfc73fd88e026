"""Property model for client premises that get cleaned."""

from enum import Enum
from typing import Any

from pydantic import BaseModel as PydanticBaseModel, Field

from cleanstay.models.base import BaseModel


class PropertyType(str, Enum):
    """Property type enum."""

    APARTMENT = "apartment"
    HOUSE = "house"
    OFFICE = "office"
    HOTEL = "hotel"
    OTHER = "other"


class CleaningSupplies(str, Enum):
    """Who provides cleaning supplies on site."""

    CLIENT = "client"
    OURS = "ours"
    PARTIAL = "partial"


class Property(BaseModel):
    """Property entity.

    Key Pattern:
        PK: TENANT#{tenant_id}
        SK: PROPERTY#{id}
        GSI1PK: CLIENT#{client_id}
        GSI1SK: PROPERTY#{id}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    client_id: str = Field(..., description="Client (owner) user ID")

    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=500)
    type: PropertyType = Field(..., description="Property type")
    size_sqm: float | None = Field(None, gt=0)
    layout: str | None = Field(None, max_length=100, description="e.g. 2+kk")
    bathrooms: float | None = Field(None, gt=0)
    notes: str | None = Field(None, max_length=5000)
    settings: dict[str, Any] = Field(default_factory=dict)

    cleaning_instructions: str | None = Field(None, max_length=5000)
    access_instructions: str | None = Field(None, max_length=5000)
    equipment_on_site: str | None = Field(None, max_length=2000)
    preferred_cleaning_times: str | None = Field(None, max_length=500)
    special_requirements: str | None = Field(None, max_length=2000)
    cleaning_supplies: CleaningSupplies | None = None
    pets: str | None = Field(None, max_length=500)

    def get_pk(self) -> str:
        """Get partition key: TENANT#{tenant_id}."""
        return f"TENANT#{self.tenant_id}"

    def get_sk(self) -> str:
        """Get sort key: PROPERTY#{id}."""
        return f"PROPERTY#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for client lookup."""
        return {
            "GSI1PK": f"CLIENT#{self.client_id}",
            "GSI1SK": f"PROPERTY#{self.id}",
        }


class CreatePropertyRequest(PydanticBaseModel):
    """Request model for creating a property."""

    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=500)
    type: PropertyType
    client_id: str = Field(..., min_length=1)
    size_sqm: float | None = Field(None, gt=0)
    layout: str | None = Field(None, max_length=100)
    bathrooms: float | None = Field(None, gt=0)
    notes: str | None = Field(None, max_length=5000)
    settings: dict[str, Any] | None = None
    cleaning_instructions: str | None = Field(None, max_length=5000)
    access_instructions: str | None = Field(None, max_length=5000)
    equipment_on_site: str | None = Field(None, max_length=2000)
    preferred_cleaning_times: str | None = Field(None, max_length=500)
    special_requirements: str | None = Field(None, max_length=2000)
    cleaning_supplies: CleaningSupplies | None = None
    pets: str | None = Field(None, max_length=500)


class UpdatePropertyRequest(PydanticBaseModel):
    """Request model for updating a property. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=100)
    address: str | None = Field(None, min_length=1, max_length=500)
    type: PropertyType | None = None
    client_id: str | None = Field(None, min_length=1)
    size_sqm: float | None = Field(None, gt=0)
    layout: str | None = Field(None, max_length=100)
    bathrooms: float | None = Field(None, gt=0)
    notes: str | None = Field(None, max_length=5000)
    settings: dict[str, Any] | None = None
    cleaning_instructions: str | None = Field(None, max_length=5000)
    access_instructions: str | None = Field(None, max_length=5000)
    equipment_on_site: str | None = Field(None, max_length=2000)
    preferred_cleaning_times: str | None = Field(None, max_length=500)
    special_requirements: str | None = Field(None, max_length=2000)
    cleaning_supplies: CleaningSupplies | None = None
    pets: str | None = Field(None, max_length=500)
