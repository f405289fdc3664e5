"""Shared fixtures: a fake requests session and a fake clock."""

import json
from collections import deque

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from repo_harvester.client import GitHubClient
from repo_harvester.rate_limiter import QuotaTracker


def make_response(body=None, status=200, headers=None, raw=None):
    """Build a requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    if raw is not None:
        response._content = raw
    elif body is None:
        response._content = b""
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


def quota_headers(remaining, reset):
    return {"X-RateLimit-Remaining": str(remaining), "X-RateLimit-Reset": str(reset)}


class FakeSession:
    """Serves queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses):
        self.headers = {}
        self.queue = deque(responses)
        self.calls = []

    def add(self, *responses):
        self.queue.extend(responses)

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        if not self.queue:
            raise AssertionError(f"Unexpected request: {url} {params}")
        item = self.queue.popleft()
        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def pages_requested(self):
        return [params.get("page") for _, params in self.calls]


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def quota(clock):
    return QuotaTracker(pause_threshold=10, buffer_seconds=10.0, clock=clock.time, sleep=clock.sleep)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session, quota):
    return GitHubClient(token="ghp_test", quota=quota, session=session)
