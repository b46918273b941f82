"""
Shared type definitions for scopedsearch.

An EntitySchema is the declarative field table of one searchable entity:
for every field it states the value type used for coercion, the filter
kind that picks the predicate operator, and whether the field may be
filtered on, sorted by, or returned to callers.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class ValueType(str, Enum):
    """Value types used to coerce filter input and normalize output."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    UUID = "uuid"
    JSON = "json"


class FilterKind(str, Enum):
    """How a filter on the field is turned into a predicate."""

    EXACT = "exact"  # Equals, or In when given a list
    TEXT = "text"  # Contains
    RANGE = "range"  # Range via <field>_from / <field>_to
    ENUM = "enum"  # Equals / In, restricted to declared choices


class FieldSpec(BaseModel):
    """Declaration of a single entity field."""

    name: str
    value_type: ValueType = ValueType.STRING
    kind: FilterKind = FilterKind.EXACT
    filterable: bool = True
    sortable: bool = False
    public: bool = True
    nullable: bool = False
    case_sensitive: bool = False
    choices: list[Any] | None = None
    column: str | None = Field(
        default=None, description="Storage attribute name, when it differs from the field name"
    )

    model_config = {"frozen": True}

    @property
    def storage_name(self) -> str:
        return self.column or self.name

    @model_validator(mode="after")
    def check_kind(self) -> "FieldSpec":
        if self.kind == FilterKind.ENUM and not self.choices:
            raise ValueError(f"Enum field '{self.name}' must declare choices")
        if self.kind == FilterKind.TEXT and self.value_type != ValueType.STRING:
            raise ValueError(f"Text field '{self.name}' must have value_type 'string'")
        if self.kind == FilterKind.RANGE and self.value_type not in (
            ValueType.INTEGER,
            ValueType.FLOAT,
            ValueType.DATETIME,
            ValueType.DATE,
        ):
            raise ValueError(f"Range field '{self.name}' must be numeric or temporal")
        return self


class EntitySchema(BaseModel):
    """Field table for one searchable entity."""

    name: str
    fields: dict[str, FieldSpec] = Field(default_factory=dict)
    primary_key: str = "id"
    description: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_fields(self) -> "EntitySchema":
        for key, spec in self.fields.items():
            if key != spec.name:
                raise ValueError(f"Field key '{key}' does not match spec name '{spec.name}'")
        if self.fields and self.primary_key not in self.fields:
            raise ValueError(f"Primary key '{self.primary_key}' is not a declared field")
        return self

    @classmethod
    def build(
        cls,
        name: str,
        *fields: FieldSpec,
        primary_key: str = "id",
        description: str | None = None,
    ) -> "EntitySchema":
        """Build a schema from positional field specs."""
        return cls(
            name=name,
            fields={f.name: f for f in fields},
            primary_key=primary_key,
            description=description,
        )

    def get_field(self, name: str) -> FieldSpec | None:
        return self.fields.get(name)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def filterable_fields(self) -> list[str]:
        return [name for name, spec in self.fields.items() if spec.filterable]

    def sortable_fields(self) -> list[str]:
        return [name for name, spec in self.fields.items() if spec.sortable]

    def public_fields(self) -> list[FieldSpec]:
        return [spec for spec in self.fields.values() if spec.public]


class SchemaMetadata(BaseModel):
    """All searchable entities known to an engine."""

    entities: dict[str, EntitySchema] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @classmethod
    def of(cls, *schemas: EntitySchema) -> "SchemaMetadata":
        return cls(entities={s.name: s for s in schemas})

    def get_entity(self, name: str) -> EntitySchema | None:
        """Get the field table for a specific entity."""
        return self.entities.get(name)

    def list_entities(self) -> list[str]:
        """List all entity names."""
        return list(self.entities.keys())
