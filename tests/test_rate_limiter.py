"""Tests for QuotaTracker."""

import pytest

from repo_harvester.rate_limiter import UNBOUNDED, QuotaTracker

from conftest import make_response, quota_headers


class TestQuotaState:

    def test_starts_unbounded(self, quota):
        assert quota.remaining == UNBOUNDED
        assert quota.reset_at == 0
        assert not quota.should_pause()
        assert not quota.snapshot().is_known

    def test_partial_update_keeps_other_field(self, quota):
        quota.record_response_headers(remaining=42, reset_epoch_seconds=1000)
        quota.record_response_headers(remaining=41)
        assert quota.remaining == 41
        assert quota.reset_at == 1000

        quota.record_response_headers(reset_epoch_seconds=2000)
        assert quota.remaining == 41
        assert quota.reset_at == 2000

    def test_missing_headers_do_not_regress_to_unknown(self, quota):
        quota.record_response(make_response([], headers=quota_headers(50, 1234)))
        quota.record_response(make_response([]))
        assert quota.remaining == 50
        assert quota.reset_at == 1234

    def test_malformed_header_is_ignored(self, quota):
        quota.record_response_headers(remaining=7, reset_epoch_seconds=99)
        quota.record_response(make_response([], headers={
            "X-RateLimit-Remaining": "lots",
            "X-RateLimit-Reset": "100",
        }))
        assert quota.remaining == 7
        assert quota.reset_at == 100


class TestShouldPause:

    @pytest.mark.parametrize("remaining, expected", [(0, True), (9, True), (10, False), (4999, False)])
    def test_threshold_is_strict(self, quota, remaining, expected):
        quota.record_response_headers(remaining=remaining)
        assert quota.should_pause() is expected

    def test_explicit_threshold(self, quota):
        quota.record_response_headers(remaining=50)
        assert quota.should_pause(100)
        assert not quota.should_pause(50)


class TestWaiting:

    def test_wait_duration_includes_buffer(self, quota, clock):
        quota.record_response_headers(remaining=0, reset_epoch_seconds=int(clock.now) + 60)
        assert quota.compute_wait_duration() == pytest.approx(70.0)

    def test_wait_duration_never_negative(self, quota, clock):
        quota.record_response_headers(remaining=0, reset_epoch_seconds=int(clock.now) - 3600)
        assert quota.compute_wait_duration() == 0.0

    def test_pause_sleeps_and_resets_to_unbounded(self, quota, clock):
        quota.record_response_headers(remaining=3, reset_epoch_seconds=int(clock.now) + 20)

        slept = quota.wait_if_needed()

        assert slept == pytest.approx(30.0)
        assert clock.sleeps == [pytest.approx(30.0)]
        assert quota.remaining == UNBOUNDED
        assert not quota.should_pause()

    def test_next_response_overwrites_sentinel(self, quota, clock):
        quota.record_response_headers(remaining=1, reset_epoch_seconds=int(clock.now) + 5)
        quota.wait_if_needed()

        quota.record_response(make_response([], headers=quota_headers(4999, int(clock.now) + 3600)))

        assert quota.remaining == 4999
        assert quota.reset_at == int(clock.now) + 3600

    def test_no_sleep_when_quota_is_fine(self, quota, clock):
        quota.record_response_headers(remaining=500, reset_epoch_seconds=int(clock.now) + 20)
        assert quota.wait_if_needed() == 0.0
        assert clock.sleeps == []

    def test_no_sleep_when_reset_already_passed(self, clock):
        quota = QuotaTracker(buffer_seconds=0, clock=clock.time, sleep=clock.sleep)
        quota.record_response_headers(remaining=0, reset_epoch_seconds=int(clock.now) - 1)
        assert quota.wait_if_needed() == 0.0
        assert clock.sleeps == []
        assert quota.remaining == 0


def test_describe_mentions_remaining(quota):
    quota.record_response_headers(remaining=12, reset_epoch_seconds=0)
    assert quota.snapshot().describe().startswith("12 requests remaining")
