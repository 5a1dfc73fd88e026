"""Entity base class and DynamoDB value conversion."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Self

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field
from ulid import ULID


def generate_ulid() -> str:
    """New sortable entity ID."""
    return str(ULID())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Convert ``value`` to UTC; naive datetimes are taken as UTC.

    Sort keys embed the ISO string, which only orders correctly at one offset.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_item_value(value: Any) -> Any:
    """Make a JSON-mode value storable: floats to Decimal, None dropped from maps."""
    if isinstance(value, dict):
        return {k: to_item_value(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [to_item_value(v) for v in value]
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def from_item_value(value: Any) -> Any:
    """Undo boto3's Decimal numbers: integral values to int, others to float."""
    if isinstance(value, dict):
        return {k: from_item_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_item_value(v) for v in value]
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


class TimestampMixin(PydanticBaseModel):
    """created_at / updated_at, both UTC."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class BaseModel(TimestampMixin):
    """Base for every stored CleanStay entity.

    Subclasses define ``get_pk`` / ``get_sk`` and, when the entity is reachable
    through a secondary index, ``get_gsi1_keys`` / ``get_gsi2_keys``. Enum
    fields are stored as their string values.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=generate_ulid)
    version: int = Field(default=1, description="Optimistic locking version")

    def to_dynamodb(self) -> dict[str, Any]:
        """Attribute map without table keys; datetimes as ISO strings."""
        return to_item_value(self.model_dump(mode="json", by_alias=True))

    @classmethod
    def from_dynamodb(cls, item: dict[str, Any]) -> Self:
        """Build the entity from a raw item. Key attributes are ignored."""
        return cls.model_validate(from_item_value(item))

    def get_pk(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} must define get_pk()")

    def get_sk(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} must define get_sk()")

    def get_keys(self) -> dict[str, str]:
        return {"PK": self.get_pk(), "SK": self.get_sk()}

    def get_index_keys(self) -> dict[str, str]:
        """GSI1 and GSI2 attributes the entity currently projects into."""
        keys: dict[str, str] = {}
        for name in ("get_gsi1_keys", "get_gsi2_keys"):
            getter = getattr(self, name, None)
            if getter is not None:
                keys.update(getter() or {})
        return keys

    def update_timestamp(self) -> None:
        self.updated_at = utc_now()

    def increment_version(self) -> None:
        self.version += 1
