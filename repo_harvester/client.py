"""
GitHub REST API client.

Fetches one page of a collection endpoint at a time and keeps the shared
quota tracker current with every response.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from urllib3.exceptions import NameResolutionError

from repo_harvester.errors import RequestFailedError
from repo_harvester.rate_limiter import QuotaTracker

logger = logging.getLogger(__name__)

TOKEN_PLACEHOLDER = "your_github_pat_here"


def usable_token(token: Optional[str]) -> Optional[str]:
    """Return the token, or None if it is empty or the placeholder value."""
    if not token or not token.strip():
        return None
    if token.strip().lower() == TOKEN_PLACEHOLDER:
        return None
    return token.strip()


class GitHubClient:
    """
    Read-only GitHub REST API client.

    Every response, successful or not, updates the quota tracker before
    the result is returned or the error raised. Failed requests are never
    retried.
    """

    BASE_URL = "https://api.github.com"
    USER_AGENT = "repo-harvester"

    def __init__(
        self,
        token: Optional[str] = None,
        quota: Optional[QuotaTracker] = None,
        session: Optional[requests.Session] = None,
        base_url: str = BASE_URL,
        timeout: float = 30,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token (optional, increases rate limit)
            quota: QuotaTracker shared with the harvesters (optional)
            session: requests.Session to send requests with (optional)
            base_url: API root
            timeout: Per-request timeout in seconds
        """
        self.token = usable_token(token)
        self.quota = quota or QuotaTracker()
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self.session.headers.update({
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self.USER_AGENT,
        })
        if self.token:
            self.session.headers["Authorization"] = f"token {self.token}"

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    def fetch_page(
        self, resource_path: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Fetch a single resource and decode its JSON body.

        Args:
            resource_path: API path, e.g. "/repos/octocat/hello/commits"
            params: Query parameters

        Returns:
            Decoded JSON, or None for a 204 No Content response

        Raises:
            RequestFailedError: On transport failure, non-2xx status or
                an undecodable body
        """
        url = f"{self.base_url}{resource_path}"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            kind = RequestFailedError.DNS if _is_dns_failure(e) else RequestFailedError.TRANSPORT
            raise RequestFailedError(
                resource_path, kind, message=str(e), quota=self.quota.snapshot()
            ) from e

        status = self.quota.record_response(response)
        if status.is_known:
            logger.info("Rate limit status: %s", status.describe())

        if not 200 <= response.status_code < 300:
            message, documentation_url = _error_details(response)
            raise RequestFailedError(
                resource_path,
                RequestFailedError.API,
                status=response.status_code,
                message=message,
                documentation_url=documentation_url,
                quota=status,
            )

        if response.status_code == 204:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise RequestFailedError(
                resource_path,
                RequestFailedError.DECODE,
                status=response.status_code,
                message=str(e),
                quota=status,
            ) from e

    def fetch_list_page(
        self, resource_path: str, params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Fetch one page of a collection endpoint, which must be a JSON array."""
        data = self.fetch_page(resource_path, params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise RequestFailedError(
                resource_path,
                RequestFailedError.DECODE,
                message=f"expected a JSON array, got {type(data).__name__}",
                quota=self.quota.snapshot(),
            )
        return data


def _error_details(response: requests.Response):
    """Pull message and documentation_url out of an error body if it is JSON."""
    try:
        body = response.json()
    except ValueError:
        return None, None
    if not isinstance(body, dict):
        return None, None
    return body.get("message"), body.get("documentation_url")


def _is_dns_failure(exc: BaseException) -> bool:
    # requests wraps urllib3's MaxRetryError, whose reason holds the resolver error
    seen = 0
    current: Optional[BaseException] = exc
    while current is not None and seen < 10:
        if isinstance(current, NameResolutionError):
            return True
        seen += 1
        reason = getattr(current, "reason", None)
        if isinstance(reason, BaseException):
            current = reason
        elif current.args and isinstance(current.args[0], BaseException):
            current = current.args[0]
        else:
            current = current.__cause__
    return False
