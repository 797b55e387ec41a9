"""
Content manager actions on the admin API: publish and unpublish entries.
"""

from typing import Any, Dict, Optional

from helper_plugin.admin_client import AdminClient
from helper_plugin.common.logger import setup_logger
from helper_plugin.exceptions import ContentApiError

logger = setup_logger(__name__)


class ContentManagerClient(AdminClient):
    """Client for content manager entry actions."""

    error_class = ContentApiError

    def _entry_endpoint(self, uid: str, entry_id: Any, is_single_type: bool) -> str:
        if is_single_type:
            return f"/content-manager/single-types/{uid}"
        if entry_id is None:
            raise ContentApiError(f"Collection type {uid} needs an entry id")
        return f"/content-manager/collection-types/{uid}/{entry_id}"

    def _action(
        self,
        action: str,
        uid: str,
        entry_id: Any,
        is_single_type: bool
    ) -> Dict[str, Any]:
        endpoint = f"{self._entry_endpoint(uid, entry_id, is_single_type)}/actions/{action}"
        entry = self._post(endpoint)
        if not isinstance(entry, dict):
            raise ContentApiError(f"{action} of {uid} returned {entry!r}, expected an entry")

        logger.info("%s %s (id=%s)", action.capitalize(), uid, entry_id)
        return entry

    def publish(
        self,
        uid: str,
        entry_id: Optional[Any] = None,
        is_single_type: bool = False
    ) -> Dict[str, Any]:
        """
        Publish an entry.

        Args:
            uid: Content type identifier, e.g. api::article.article
            entry_id: Entry id (ignored for single types)
            is_single_type: Whether uid names a single type

        Returns:
            The published entry as returned by the server

        Raises:
            ContentApiError: On transport failure, error status or malformed response
        """
        return self._action("publish", uid, entry_id, is_single_type)

    def unpublish(
        self,
        uid: str,
        entry_id: Optional[Any] = None,
        is_single_type: bool = False
    ) -> Dict[str, Any]:
        """Revert an entry to draft. Same arguments and errors as publish."""
        return self._action("unpublish", uid, entry_id, is_single_type)
