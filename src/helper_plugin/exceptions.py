"""
Exception hierarchy for the content manager helper.

Every error raised by this package inherits from HelperPluginError so callers
can catch broadly or narrowly as needed.
"""

from typing import Optional


class HelperPluginError(Exception):
    """Base exception for all helper plugin errors."""
    pass


class ConfigError(HelperPluginError):
    """Configuration file is missing or invalid."""
    pass


class SchemaError(HelperPluginError):
    """A raw content-type or component schema could not be parsed."""
    pass


# --- Redaction errors ---


class RedactionError(HelperPluginError):
    """
    Base for errors raised while redacting a content record.

    Attributes:
        path: Location of the offending node, e.g. ``sections[1].media``
    """

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(f"{message} (at {path})" if path else message)


class UnresolvedComponentSchema(RedactionError):
    """A component identifier has no entry in the component schema table."""

    def __init__(self, component_uid: str, path: str = ""):
        self.component_uid = component_uid
        super().__init__(f"Unknown component schema: {component_uid!r}", path)


class MalformedDynamicZoneEntry(RedactionError):
    """A dynamic zone entry is not a record or lacks its __component discriminator."""
    pass


class ContentShapeError(RedactionError):
    """A structured field holds a value of the wrong container type."""
    pass


class RedactionDepthExceeded(RedactionError):
    """Content nesting went deeper than the configured maximum."""

    def __init__(self, max_depth: int, path: str = ""):
        self.max_depth = max_depth
        super().__init__(f"Maximum nesting depth of {max_depth} exceeded", path)


# --- Admin API errors ---


class AdminApiError(HelperPluginError):
    """An admin API request failed or returned a malformed response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PermissionCheckError(AdminApiError):
    """The permission-check endpoint failed or returned a malformed response."""
    pass


class ContentApiError(AdminApiError):
    """A content manager action (publish, unpublish) failed."""
    pass


# --- Edit view errors ---


class PublishNotAvailable(HelperPluginError):
    """Publishing was requested for an entry that cannot be published."""
    pass
