"""
Content tree redactor.

Strips server-managed and audit fields from a content record before it is
submitted, recursing into components and dynamic zones with each nested
value's own schema.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from helper_plugin.common.logger import setup_logger
from helper_plugin.content_manager.schema import (
    AttributeKind,
    AttributeSchema,
    ComponentSchemaTable,
    ContentTypeSchema,
)
from helper_plugin.exceptions import (
    ContentShapeError,
    MalformedDynamicZoneEntry,
    RedactionDepthExceeded,
)

logger = setup_logger(__name__)

DEFAULT_EXCLUDED_FIELDS: Tuple[str, ...] = ("createdBy", "updatedBy", "publishedAt", "id", "_id")

# Key identifying the component schema of a dynamic zone entry
DYNAMIC_ZONE_DISCRIMINATOR = "__component"

DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True)
class RedactionPolicy:
    """
    Settings for a redaction pass.

    Attributes:
        excluded_fields: Names removed at every level, on top of each schema's timestamps
        retain_unstructured: Copy scalars, falsy values and undeclared fields
            through instead of omitting them
        max_depth: Deepest record nesting accepted before failing
    """
    excluded_fields: Tuple[str, ...] = DEFAULT_EXCLUDED_FIELDS
    retain_unstructured: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH

    @classmethod
    def from_config(cls, config) -> 'RedactionPolicy':
        """Build a policy from a helper Config."""
        return cls(
            excluded_fields=config.excluded_fields,
            retain_unstructured=config.retain_unstructured,
            max_depth=config.max_depth,
        )


def _is_entry_list(value: Any) -> bool:
    """Ordered sequence of entries; strings and bytes do not count."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _join(path: str, key: Any) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else str(key)


class ContentRedactor:
    """
    Redacts content records against a content-type schema.

    The redactor holds only immutable settings, so one instance can be shared
    between threads.
    """

    def __init__(
        self,
        components: Any = None,
        policy: Optional[RedactionPolicy] = None
    ):
        """
        Args:
            components: ComponentSchemaTable or raw {uid: schema} dict
            policy: Redaction settings (base policy if None)
        """
        self.components = ComponentSchemaTable.coerce(components)
        self.policy = policy or RedactionPolicy()

    def redact(self, record: Mapping[str, Any], content_type: Any) -> Dict[str, Any]:
        """
        Return a sanitized copy of record.

        Args:
            record: Content record to sanitize
            content_type: ContentTypeSchema or raw schema dict for the record

        Returns:
            New record sharing no mutable state with the input

        Raises:
            UnresolvedComponentSchema: A component identifier is not registered
            MalformedDynamicZoneEntry: A dynamic zone entry has no usable discriminator
            ContentShapeError: A structured field holds the wrong container type
            RedactionDepthExceeded: Nesting exceeds policy.max_depth
        """
        schema = ContentTypeSchema.coerce(content_type)
        if not isinstance(record, Mapping):
            raise ContentShapeError(
                f"Content record must be a mapping, got {type(record).__name__}"
            )

        result = self._redact_record(record, schema, "", 0)
        logger.debug(
            "Redacted %s: kept %d of %d top-level fields",
            schema.uid or "record", len(result), len(record)
        )
        return result

    def _redact_record(
        self,
        record: Mapping[str, Any],
        schema: ContentTypeSchema,
        path: str,
        depth: int,
        keep: FrozenSet[str] = frozenset()
    ) -> Dict[str, Any]:
        if depth > self.policy.max_depth:
            raise RedactionDepthExceeded(self.policy.max_depth, path)

        excluded = schema.excluded_names(self.policy.excluded_fields)
        result: Dict[str, Any] = {}

        for name, value in record.items():
            if name in excluded:
                continue

            if name in keep:
                result[name] = value
                continue

            attr = schema.attribute(name)
            structured = attr is not None and attr.kind is not AttributeKind.SCALAR

            if not value or not structured:
                if self.policy.retain_unstructured:
                    result[name] = copy.deepcopy(value)
                continue

            field_path = _join(path, name)
            if attr.kind is AttributeKind.COMPONENT:
                redacted = self._redact_component(value, attr, field_path, depth)
            else:
                redacted = self._redact_dynamic_zone(value, attr, field_path, depth)

            # An emptied single component is falsy on the next pass; drop it now
            if not redacted and not self.policy.retain_unstructured:
                continue
            result[name] = redacted

        return result

    def _redact_component(
        self,
        value: Any,
        attr: AttributeSchema,
        path: str,
        depth: int
    ) -> Any:
        schema = self.components.resolve(attr.component, path)

        if not attr.repeatable:
            if not isinstance(value, Mapping):
                raise ContentShapeError(
                    f"Component {attr.component!r} must be a record, got {type(value).__name__}",
                    path
                )
            return self._redact_record(value, schema, path, depth + 1)

        if not _is_entry_list(value):
            raise ContentShapeError(
                f"Repeatable component {attr.component!r} must be a list, "
                f"got {type(value).__name__}",
                path
            )

        entries: List[Dict[str, Any]] = []
        for index, entry in enumerate(value):
            entry_path = _join(path, index)
            if not isinstance(entry, Mapping):
                raise ContentShapeError(
                    f"Repeatable component entry must be a record, got {type(entry).__name__}",
                    entry_path
                )
            entries.append(self._redact_record(entry, schema, entry_path, depth + 1))
        return entries

    def _redact_dynamic_zone(
        self,
        value: Any,
        attr: AttributeSchema,
        path: str,
        depth: int
    ) -> List[Dict[str, Any]]:
        if not _is_entry_list(value):
            raise ContentShapeError(
                f"Dynamic zone must be a list, got {type(value).__name__}", path
            )

        entries: List[Dict[str, Any]] = []
        for index, entry in enumerate(value):
            entry_path = _join(path, index)
            if not isinstance(entry, Mapping):
                raise MalformedDynamicZoneEntry(
                    f"Dynamic zone entry must be a record, got {type(entry).__name__}",
                    entry_path
                )

            uid = entry.get(DYNAMIC_ZONE_DISCRIMINATOR)
            if not uid or not isinstance(uid, str):
                raise MalformedDynamicZoneEntry(
                    f"Dynamic zone entry has no {DYNAMIC_ZONE_DISCRIMINATOR} discriminator",
                    entry_path
                )

            # An empty allowed list means the zone accepts any registered component
            if attr.components and uid not in attr.components:
                raise MalformedDynamicZoneEntry(
                    f"Component {uid!r} is not allowed in this dynamic zone",
                    entry_path
                )

            schema = self.components.resolve(uid, entry_path)
            entries.append(self._redact_record(
                entry, schema, entry_path, depth + 1,
                keep=frozenset((DYNAMIC_ZONE_DISCRIMINATOR,))
            ))
        return entries


def redact(
    record: Mapping[str, Any],
    content_type_schema: Any,
    component_schemas: Any = None,
    excluded_names: Iterable[str] = DEFAULT_EXCLUDED_FIELDS,
    retain_unstructured: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH
) -> Dict[str, Any]:
    """
    Strip excluded fields from a content record.

    Under the default policy, only fields the schema marks as components or
    dynamic zones survive (recursively redacted); scalars and falsy values are
    omitted. Pass retain_unstructured=True to copy them through instead.

    Args:
        record: Content record to sanitize
        content_type_schema: Schema for the record's top-level fields
        component_schemas: Component schemas keyed by identifier
        excluded_names: Names removed at every level in addition to timestamps
        retain_unstructured: Keep scalars, falsy values and undeclared fields
        max_depth: Deepest nesting accepted

    Returns:
        A new sanitized record
    """
    policy = RedactionPolicy(
        excluded_fields=tuple(excluded_names),
        retain_unstructured=retain_unstructured,
        max_depth=max_depth,
    )
    return ContentRedactor(component_schemas, policy).redact(record, content_type_schema)
