"""
Base HTTP client for the admin API.
"""

from typing import Any, Dict, Optional, Type

import requests

from helper_plugin.common.logger import setup_logger
from helper_plugin.exceptions import AdminApiError

logger = setup_logger(__name__)


class AdminClient:
    """Authenticated JSON requests against the admin server."""

    # Request timeout in seconds
    DEFAULT_TIMEOUT = 10

    # Raised on any failure; subclasses narrow it
    error_class: Type[AdminApiError] = AdminApiError

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: Admin server URL, e.g. http://localhost:1337
            api_token: Bearer token of the current admin user
            timeout: Request timeout in seconds
            session: Shared requests session (a new one is created if None)
        """
        self.base_url = base_url.rstrip('/')
        self.api_token = api_token
        self.timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        """Create a client from a helper Config."""
        return cls(config.admin_url, config.api_token, config.request_timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def _post(self, endpoint: str, payload: Any = None) -> Any:
        """
        POST JSON and return the decoded response body.

        Raises:
            AdminApiError: (as error_class) on transport failure, non-2xx status or invalid JSON
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = self._session.post(
                url,
                json=payload if payload is not None else {},
                headers=self._headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", endpoint, e)
            raise self.error_class(f"Request to {endpoint} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error("Request to %s returned status %d", endpoint, response.status_code)
            raise self.error_class(
                f"Request to {endpoint} failed with status {response.status_code}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise self.error_class(f"Request to {endpoint} returned invalid JSON") from e
