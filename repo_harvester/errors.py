"""Exceptions raised by the harvester."""

from pathlib import Path
from typing import Optional

from repo_harvester.rate_limiter import QuotaStatus


class HarvestError(Exception):
    pass


class RequestFailedError(HarvestError):
    """A page request that produced no usable data."""

    TRANSPORT = "transport"
    DNS = "dns"
    API = "api"
    DECODE = "decode"

    def __init__(
        self,
        path: str,
        kind: str,
        status: Optional[int] = None,
        message: Optional[str] = None,
        documentation_url: Optional[str] = None,
        quota: Optional[QuotaStatus] = None,
    ):
        self.path = path
        self.kind = kind
        self.status = status
        self.message = message
        self.documentation_url = documentation_url
        self.quota = quota
        super().__init__(self._format())

    def _format(self) -> str:
        if self.kind == self.DNS:
            text = f"DNS lookup failed for {self.path}. Check your internet connection and the hostname"
        elif self.kind == self.TRANSPORT:
            text = f"HTTPS request failed for {self.path}"
        elif self.kind == self.DECODE:
            text = f"Failed to parse JSON response for {self.path}"
        else:
            text = f"GitHub API request failed for {self.path} with status code {self.status}"

        if self.message:
            text += f": {self.message}"
        if self.documentation_url:
            text += f" (Docs: {self.documentation_url})"
        if self.quota is not None:
            text += f" (Rate Limit: {self.quota.describe()})"
        return text


class ExportError(HarvestError):
    """Writing an output file failed."""

    def __init__(self, path: Path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Error writing {path}: {cause}")
