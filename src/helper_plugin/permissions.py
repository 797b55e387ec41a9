"""
Permission-check client for the admin API.

Asks the server which of a list of actions the current admin user may
perform. Each permission is a dict like::

    {"action": "plugin::content-manager.explorer.update", "subject": "api::article.article"}
"""

from typing import Any, Dict, List, Mapping, Sequence

from helper_plugin.admin_client import AdminClient
from helper_plugin.exceptions import PermissionCheckError

CHECK_ENDPOINT = "/admin/permissions/check"


class PermissionClient(AdminClient):
    """Client for the admin permission-check endpoint."""

    error_class = PermissionCheckError

    def check(self, permissions: Sequence[Mapping[str, Any]]) -> List[bool]:
        """
        Check which permissions the current user holds.

        Args:
            permissions: Permission dicts with an 'action' and optional 'subject'/'field'

        Returns:
            One boolean per permission, in request order

        Raises:
            PermissionCheckError: On transport failure, error status, or malformed response
        """
        if not permissions:
            return []

        payload = {
            "permissions": [
                {key: perm[key] for key in ("action", "subject", "field") if perm.get(key)}
                for perm in permissions
            ]
        }

        body = self._post(CHECK_ENDPOINT, payload)
        data = body.get("data") if isinstance(body, dict) else None

        if not isinstance(data, list) or len(data) != len(permissions):
            raise PermissionCheckError(
                f"Permission check returned {data!r} for {len(permissions)} permissions"
            )

        return [bool(granted) for granted in data]

    def allowed_actions(
        self,
        permissions_by_name: Mapping[str, Sequence[Mapping[str, Any]]]
    ) -> Dict[str, bool]:
        """
        Resolve named permission groups in a single request.

        A name is allowed when any of its permissions is granted; a name with
        no permissions is not allowed.

        Example:
            >>> client.allowed_actions({'canRead': [read_perm], 'canUpdate': [update_perm]})
            {'canRead': True, 'canUpdate': False}
        """
        flat: List[Mapping[str, Any]] = []
        owners: List[str] = []
        for name, perms in permissions_by_name.items():
            for perm in perms:
                flat.append(perm)
                owners.append(name)

        results = {name: False for name in permissions_by_name}
        for name, granted in zip(owners, self.check(flat)):
            if granted:
                results[name] = True

        return results
