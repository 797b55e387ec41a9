"""
Content manager package: schema model, content redactor and edit-view form state.
"""

from helper_plugin.content_manager.redactor import (
    DEFAULT_EXCLUDED_FIELDS,
    ContentRedactor,
    RedactionPolicy,
    redact,
)
from helper_plugin.content_manager.schema import (
    AttributeKind,
    AttributeSchema,
    ComponentSchemaTable,
    ContentTypeSchema,
    load_schemas,
)

__all__ = [
    "DEFAULT_EXCLUDED_FIELDS",
    "AttributeKind",
    "AttributeSchema",
    "ComponentSchemaTable",
    "ContentRedactor",
    "ContentTypeSchema",
    "RedactionPolicy",
    "load_schemas",
    "redact",
]
