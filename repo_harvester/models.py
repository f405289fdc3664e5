"""
Data models for the repository history harvester.

Raw GitHub records come in several shapes; each shape is classified into
a kind and normalized by its own function into a flat record with every
column filled.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

NOT_AVAILABLE = "N/A"
ANONYMOUS_TYPE = "Anonymous"
GIT_IDENTITY_PREFIX = "Git: "

# Fractions of any length and offsets with or without a colon
_ISO_TIMESTAMP = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[T ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:[.,](?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:?\d{2})?$"
)


class ContributorKind(str, Enum):
    """Shape of a raw contributor record."""
    ACCOUNT = "account"  # Linked GitHub account
    ANONYMOUS = "anonymous"  # Commit identity only (anon=1)


class CommitAuthorKind(str, Enum):
    """How a raw commit's author is identified."""
    LINKED = "linked"  # GitHub user attached
    UNLINKED = "unlinked"  # Git author only
    MISSING = "missing"  # Neither


@dataclass(frozen=True)
class ContributorRecord:
    """One row of the contributors dataset."""
    login: str
    contributions: Optional[int]
    profile_url: str
    type: Optional[str]
    name: str
    email: str

    COLUMNS: ClassVar[Tuple[str, ...]] = ("Login", "Contributions", "ProfileURL", "Type", "Name", "Email")

    def to_row(self) -> Dict[str, Any]:
        return {
            "Login": self.login,
            "Contributions": self.contributions,
            "ProfileURL": self.profile_url,
            "Type": self.type,
            "Name": self.name,
            "Email": self.email,
        }


@dataclass(frozen=True)
class CommitRecord:
    """One row of the commits dataset."""
    sha: str
    author_login: str
    author_name: str
    author_email: str
    date: str
    message: str

    COLUMNS: ClassVar[Tuple[str, ...]] = ("SHA", "AuthorLogin", "AuthorName", "AuthorEmail", "Date", "Message")

    def to_row(self) -> Dict[str, Any]:
        return {
            "SHA": self.sha,
            "AuthorLogin": self.author_login,
            "AuthorName": self.author_name,
            "AuthorEmail": self.author_email,
            "Date": self.date,
            "Message": self.message,
        }


# ---------------------------------------------------------------------------
# Contributors
# ---------------------------------------------------------------------------

def contributor_kind(raw: Dict[str, Any]) -> ContributorKind:
    if not raw.get("login") and raw.get("type") == ANONYMOUS_TYPE:
        return ContributorKind.ANONYMOUS
    return ContributorKind.ACCOUNT


def normalize_account_contributor(raw: Dict[str, Any]) -> ContributorRecord:
    return ContributorRecord(
        login=raw.get("login") or NOT_AVAILABLE,
        contributions=raw.get("contributions"),
        profile_url=raw.get("html_url") or NOT_AVAILABLE,
        type=raw.get("type"),
        name=raw.get("name") or NOT_AVAILABLE,
        email=raw.get("email") or NOT_AVAILABLE,
    )


def normalize_anonymous_contributor(raw: Dict[str, Any]) -> ContributorRecord:
    """Anonymous contributors have no login or profile, only the git identity."""
    return ContributorRecord(
        login=f"Anonymous ({raw.get('name') or 'Unknown'})",
        contributions=raw.get("contributions"),
        profile_url=NOT_AVAILABLE,
        type=raw.get("type"),
        name=raw.get("name") or NOT_AVAILABLE,
        email=raw.get("email") or NOT_AVAILABLE,
    )


_CONTRIBUTOR_NORMALIZERS = {
    ContributorKind.ACCOUNT: normalize_account_contributor,
    ContributorKind.ANONYMOUS: normalize_anonymous_contributor,
}


def normalize_contributor(raw: Dict[str, Any]) -> ContributorRecord:
    return _CONTRIBUTOR_NORMALIZERS[contributor_kind(raw)](raw)


# ---------------------------------------------------------------------------
# Commits
# ---------------------------------------------------------------------------

def commit_author_kind(raw: Dict[str, Any]) -> CommitAuthorKind:
    if raw.get("author"):
        return CommitAuthorKind.LINKED
    if _git_author(raw):
        return CommitAuthorKind.UNLINKED
    return CommitAuthorKind.MISSING


def linked_author_login(raw: Dict[str, Any]) -> Optional[str]:
    """Login of the GitHub user attached to a commit, if any."""
    author = raw.get("author")
    if not author:
        return None
    return author.get("login")


def format_timestamp(value: Optional[str]) -> str:
    """
    Render an ISO-8601 timestamp as UTC with millisecond precision.

    "2024-01-02T05:04:05+02:00" -> "2024-01-02T03:04:05.000Z"
    """
    if not value:
        return NOT_AVAILABLE
    match = _ISO_TIMESTAMP.match(value.strip())
    if not match:
        return NOT_AVAILABLE

    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")
    offset = match.group("offset")
    try:
        if offset is None or offset.upper() == "Z":
            tz = timezone.utc
        else:
            sign = -1 if offset[0] == "-" else 1
            digits = offset[1:].replace(":", "")
            tz = timezone(sign * timedelta(hours=int(digits[:2]), minutes=int(digits[2:])))
        parsed = datetime.strptime(
            f"{match.group('date')}T{match.group('time')}", "%Y-%m-%dT%H:%M:%S"
        ).replace(microsecond=int(fraction), tzinfo=tz)
        parsed = parsed.astimezone(timezone.utc)
    except ValueError:
        return NOT_AVAILABLE
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def first_line(message: Optional[str]) -> str:
    return (message or "").split("\n")[0]


def _git_author(raw: Dict[str, Any]) -> Dict[str, Any]:
    return (raw.get("commit") or {}).get("author") or {}


def _commit_record(raw: Dict[str, Any], author_login: str) -> CommitRecord:
    git_author = _git_author(raw)
    return CommitRecord(
        sha=raw.get("sha") or NOT_AVAILABLE,
        author_login=author_login,
        author_name=git_author.get("name") or NOT_AVAILABLE,
        author_email=git_author.get("email") or NOT_AVAILABLE,
        date=format_timestamp(git_author.get("date")),
        message=first_line((raw.get("commit") or {}).get("message")),
    )


def normalize_linked_commit(raw: Dict[str, Any]) -> CommitRecord:
    return _commit_record(raw, linked_author_login(raw) or NOT_AVAILABLE)


def normalize_unlinked_commit(raw: Dict[str, Any]) -> CommitRecord:
    """The commit's git identity is not attached to any GitHub account."""
    name = _git_author(raw).get("name")
    login = f"{GIT_IDENTITY_PREFIX}{name}" if name else NOT_AVAILABLE
    return _commit_record(raw, login)


def normalize_authorless_commit(raw: Dict[str, Any]) -> CommitRecord:
    return _commit_record(raw, NOT_AVAILABLE)


_COMMIT_NORMALIZERS = {
    CommitAuthorKind.LINKED: normalize_linked_commit,
    CommitAuthorKind.UNLINKED: normalize_unlinked_commit,
    CommitAuthorKind.MISSING: normalize_authorless_commit,
}


def normalize_commit(raw: Dict[str, Any]) -> CommitRecord:
    return _COMMIT_NORMALIZERS[commit_author_kind(raw)](raw)
