from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing import Any, ClassVar, Dict, Type, TypeVar

from src.constants import RECORD_SCHEMA_VERSION
from src.utils.errors import RecordSchemaError

T = TypeVar("T", bound="StoredRecord")


class StoredRecord(BaseModel):
    """Base model for persisted records with an explicit schema version."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(..., description="Record ID, unique per owner")
    schema_version: int = Field(
        default=RECORD_SCHEMA_VERSION, description="Version of the record schema"
    )

    supported_schema_version: ClassVar[int] = RECORD_SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to a JSON-compatible dictionary for storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls: Type[T], data: Any, key: str = "") -> T:
        """Create a model instance from a stored dictionary.

        Raises:
            RecordSchemaError: when the record is not a mapping, declares a
                newer schema version than this code understands, or fails
                validation.
        """
        if not isinstance(data, dict):
            raise RecordSchemaError(
                key, f"expected a mapping, got {type(data).__name__}"
            )

        key = key or str(data.get("id", "?"))
        version = data.get("schema_version")
        if not isinstance(version, int):
            raise RecordSchemaError(key, "missing schema_version")
        if version > cls.supported_schema_version:
            raise RecordSchemaError(
                key,
                f"schema_version {version} is newer than supported "
                f"{cls.supported_schema_version}",
            )

        try:
            return cls.model_validate(cls.migrate(data))
        except ValidationError as e:
            raise RecordSchemaError(key, str(e)) from e

    @classmethod
    def migrate(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Upgrade an older record layout to the current one."""
        return data
