"""
Content-type and component schema model.

Schemas arrive from the content-type registry as plain dicts of the form::

    {
        "uid": "api::article.article",
        "attributes": {
            "title": {"type": "string"},
            "cover": {"type": "component", "component": "media.image", "repeatable": False},
            "sections": {"type": "dynamiczone", "components": ["blocks.hero", "blocks.quote"]},
        },
        "options": {"timestamps": ["createdAt", "updatedAt"]},
    }

and are parsed once into the frozen dataclasses below.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import yaml

from helper_plugin.exceptions import SchemaError, UnresolvedComponentSchema


class AttributeKind(Enum):
    """How the redactor treats a field."""
    SCALAR = "scalar"
    COMPONENT = "component"
    DYNAMIC_ZONE = "dynamiczone"

    @classmethod
    def from_type(cls, raw_type: Any) -> 'AttributeKind':
        """Map a registry type string onto a kind; unknown types are scalars."""
        if raw_type == "component":
            return cls.COMPONENT
        if raw_type == "dynamiczone":
            return cls.DYNAMIC_ZONE
        return cls.SCALAR


@dataclass(frozen=True)
class AttributeSchema:
    """Schema of a single field."""
    kind: AttributeKind
    component: Optional[str] = None
    repeatable: bool = False
    components: Tuple[str, ...] = ()
    raw_type: str = "string"

    @classmethod
    def from_dict(cls, name: str, raw: Any) -> 'AttributeSchema':
        if not isinstance(raw, Mapping):
            raise SchemaError(f"Attribute {name!r} must be a mapping, got {type(raw).__name__}")

        raw_type = raw.get("type", "string")
        kind = AttributeKind.from_type(raw_type)

        component = raw.get("component")
        if kind is AttributeKind.COMPONENT and not isinstance(component, str):
            raise SchemaError(f"Component attribute {name!r} has no component identifier")

        repeatable = raw.get("repeatable", False)
        if repeatable is None:
            repeatable = False
        if not isinstance(repeatable, bool):
            raise SchemaError(f"Attribute {name!r} has non-boolean repeatable flag: {repeatable!r}")

        allowed = raw.get("components") or ()
        if isinstance(allowed, str) or not isinstance(allowed, (list, tuple)):
            raise SchemaError(f"Attribute {name!r} has invalid components list: {allowed!r}")

        return cls(
            kind=kind,
            component=component if kind is AttributeKind.COMPONENT else None,
            repeatable=repeatable,
            components=tuple(str(uid) for uid in allowed),
            raw_type=str(raw_type),
        )


@dataclass(frozen=True)
class ContentTypeSchema:
    """
    Schema of a content type or component: its attributes plus the
    timestamp fields declared in its options.
    """
    attributes: Mapping[str, AttributeSchema] = field(default_factory=dict)
    timestamps: Tuple[str, ...] = ()
    uid: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Any, uid: Optional[str] = None) -> 'ContentTypeSchema':
        """
        Parse a raw registry schema.

        A mapping without an ``attributes`` key is read as the attribute
        mapping itself.

        Args:
            raw: Raw schema dict
            uid: Identifier to use when the dict does not carry one

        Raises:
            SchemaError: If the schema or one of its attributes is malformed
        """
        if not isinstance(raw, Mapping):
            raise SchemaError(f"Schema must be a mapping, got {type(raw).__name__}")

        if "attributes" in raw:
            raw_attributes = raw["attributes"] or {}
            options = raw.get("options") or {}
            uid = raw.get("uid", uid)
        else:
            raw_attributes = raw
            options = {}

        if not isinstance(raw_attributes, Mapping):
            raise SchemaError(f"Schema attributes must be a mapping (uid={uid!r})")

        attributes = {
            name: AttributeSchema.from_dict(name, attr)
            for name, attr in raw_attributes.items()
        }

        # options.timestamps may be `true` or a list; only a list names fields
        timestamps = options.get("timestamps") if isinstance(options, Mapping) else None
        if not isinstance(timestamps, (list, tuple)):
            timestamps = ()

        return cls(
            attributes=attributes,
            timestamps=tuple(str(name) for name in timestamps),
            uid=uid,
        )

    @classmethod
    def coerce(cls, value: Union['ContentTypeSchema', Mapping[str, Any]]) -> 'ContentTypeSchema':
        """Return value unchanged if already parsed, otherwise parse it."""
        if isinstance(value, cls):
            return value
        return cls.from_dict(value)

    def attribute(self, name: str) -> Optional[AttributeSchema]:
        """Get the schema of a field, or None if it is not declared."""
        return self.attributes.get(name)

    def excluded_names(self, base: Iterable[str]) -> FrozenSet[str]:
        """Union of the base exclusion list and this schema's timestamps."""
        return frozenset(base).union(self.timestamps)


class ComponentSchemaTable(Mapping):
    """Read-only lookup of component schemas by identifier."""

    def __init__(self, schemas: Optional[Mapping[str, ContentTypeSchema]] = None):
        self._schemas: Dict[str, ContentTypeSchema] = dict(schemas or {})

    @classmethod
    def from_dict(cls, raw: Any) -> 'ComponentSchemaTable':
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise SchemaError(f"Component table must be a mapping, got {type(raw).__name__}")
        schemas = {}
        for uid, schema in raw.items():
            if isinstance(schema, ContentTypeSchema):
                schemas[uid] = schema
            else:
                schemas[uid] = ContentTypeSchema.from_dict(schema, uid=uid)
        return cls(schemas)

    @classmethod
    def coerce(cls, value: Any) -> 'ComponentSchemaTable':
        if isinstance(value, cls):
            return value
        return cls.from_dict(value)

    def __getitem__(self, uid: str) -> ContentTypeSchema:
        return self._schemas[uid]

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def __repr__(self) -> str:
        return f"ComponentSchemaTable({sorted(self._schemas)})"

    def resolve(self, uid: Any, path: str = "") -> ContentTypeSchema:
        """
        Look up a component schema.

        Args:
            uid: Component identifier
            path: Location in the content tree, used in the error message

        Raises:
            UnresolvedComponentSchema: If no schema is registered under uid
        """
        schema = self._schemas.get(uid) if isinstance(uid, str) else None
        if schema is None:
            raise UnresolvedComponentSchema(str(uid), path)
        return schema

    def missing_references(self, schema: ContentTypeSchema) -> List[str]:
        """
        Find component identifiers reachable from schema that are not registered.

        Dynamic zones contribute their declared allowed components. Cyclic
        component references are visited once.
        """
        missing = set()
        visited = set()
        pending = [schema]

        while pending:
            current = pending.pop()
            for attr in current.attributes.values():
                if attr.kind is AttributeKind.COMPONENT:
                    refs: Tuple[str, ...] = (attr.component,)
                elif attr.kind is AttributeKind.DYNAMIC_ZONE:
                    refs = attr.components
                else:
                    continue

                for uid in refs:
                    if uid in visited:
                        continue
                    visited.add(uid)
                    if uid in self._schemas:
                        pending.append(self._schemas[uid])
                    else:
                        missing.add(uid)

        return sorted(missing)


def load_schemas(path: Union[str, Path]) -> Tuple[ContentTypeSchema, ComponentSchemaTable]:
    """
    Load a content type and its components from a YAML or JSON file.

    The document must look like ``{"contentType": {...}, "components": {...}}``.

    Raises:
        SchemaError: If the file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise SchemaError(f"Schema file not found: {path}")

    with open(path, 'r') as f:
        try:
            document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid schema document {path}: {e}") from e

    if not isinstance(document, Mapping) or "contentType" not in document:
        raise SchemaError(f"Schema document {path} has no contentType section")

    content_type = ContentTypeSchema.from_dict(document["contentType"])
    components = ComponentSchemaTable.from_dict(document.get("components"))
    return content_type, components
