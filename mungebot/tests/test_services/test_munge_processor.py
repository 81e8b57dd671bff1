"""Tests for the per-issue resolve/wait/enrich/dispatch sequence."""

import pytest
from unittest.mock import MagicMock

from models.github_schemas import Commit, Event, MungeObject
from models.munge_schemas import MungeOutcome, PRResolution
from services.github_client import GithubAPIError
from services.munge_processor import MungeProcessor, RetryPolicy, resolve_pull_request
from services.mungers.base import MungerRegistry
from tests.conftest import RecordingMunger, make_issue, make_pr


class SleepRecorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def registry(calls):
    registry = MungerRegistry()
    for name in ("A", "B", "C"):
        registry.register(RecordingMunger(name, calls))
    registry.activate(["A", "B", "C"], MagicMock())
    calls.clear()
    return registry


@pytest.fixture
def processor(registry, sleeper):
    return MungeProcessor(registry, RetryPolicy(sleep=sleeper))


def _munges(calls):
    return [name for name, hook in calls if hook == "munge"]


class TestResolvePullRequest:
    def test_resolved(self, remote):
        resolution, pr = resolve_pull_request(remote, MungeObject(issue=make_issue()))
        assert resolution is PRResolution.RESOLVED
        assert pr.number == 1

    def test_not_a_pr(self, remote):
        remote.fetch_pull_request.return_value = None
        resolution, pr = resolve_pull_request(remote, MungeObject(issue=make_issue(is_pr=False)))
        assert resolution is PRResolution.NOT_A_PR
        assert pr is None

    def test_lookup_failed(self, remote):
        remote.fetch_pull_request.side_effect = GithubAPIError(502, "/pulls/1", "bad gateway")
        resolution, pr = resolve_pull_request(remote, MungeObject(issue=make_issue()))
        assert resolution is PRResolution.LOOKUP_FAILED
        assert pr is None


class TestStopsWithoutDispatch:
    def test_not_a_pr(self, processor, remote, calls):
        remote.fetch_pull_request.return_value = None
        obj = MungeObject(issue=make_issue(is_pr=False))

        assert processor.process_item(remote, obj) is MungeOutcome.NOT_A_PR
        assert _munges(calls) == []
        assert obj.pr is None and obj.commits is None and obj.events is None
        remote.fetch_filled_commits.assert_not_called()

    def test_lookup_error_is_swallowed(self, processor, remote, calls):
        remote.fetch_pull_request.side_effect = GithubAPIError(500, "/pulls/1", "boom")
        obj = MungeObject(issue=make_issue())

        assert processor.process_item(remote, obj) is MungeOutcome.LOOKUP_FAILED
        assert _munges(calls) == []
        assert obj.commits is None and obj.events is None

    def test_merged(self, processor, remote, calls, sleeper):
        remote.fetch_pull_request.return_value = make_pr(merged=True, mergeable=None)
        obj = MungeObject(issue=make_issue())

        assert processor.process_item(remote, obj) is MungeOutcome.MERGED
        assert _munges(calls) == []
        assert obj.commits is None and obj.events is None
        assert sleeper.delays == []


class TestMergeabilityWait:
    def test_known_mergeability_does_not_wait(self, processor, remote, sleeper):
        processor.process_item(remote, MungeObject(issue=make_issue()))
        assert sleeper.delays == []
        assert remote.fetch_pull_request.call_count == 1

    def test_unknown_waits_once_and_refetches_once(self, processor, remote, sleeper):
        remote.fetch_pull_request.side_effect = [
            make_pr(mergeable=None),
            make_pr(mergeable=False),
        ]
        obj = MungeObject(issue=make_issue())

        assert processor.process_item(remote, obj) is MungeOutcome.DISPATCHED
        assert sleeper.delays == [2.0]
        assert remote.fetch_pull_request.call_count == 2
        assert obj.pr.mergeable is False

    def test_still_unknown_after_retry_proceeds(self, processor, remote, sleeper, calls):
        remote.fetch_pull_request.return_value = make_pr(mergeable=None)
        obj = MungeObject(issue=make_issue())

        assert processor.process_item(remote, obj) is MungeOutcome.DISPATCHED
        assert sleeper.delays == [2.0]
        assert remote.fetch_pull_request.call_count == 2
        assert obj.pr.mergeable is None
        assert _munges(calls) == ["A", "B", "C"]

    def test_refetch_error_keeps_first_copy(self, processor, remote, sleeper, calls):
        remote.fetch_pull_request.side_effect = [
            make_pr(mergeable=None, title="first"),
            GithubAPIError(502, "/pulls/1", "bad gateway"),
        ]
        obj = MungeObject(issue=make_issue())

        assert processor.process_item(remote, obj) is MungeOutcome.DISPATCHED
        assert obj.pr.title == "first"
        assert _munges(calls) == ["A", "B", "C"]

    def test_policy_with_more_retries_stops_when_known(self, registry, remote):
        sleeper = SleepRecorder()
        processor = MungeProcessor(registry, RetryPolicy(max_retries=3, delay_seconds=1, backoff=2, sleep=sleeper))
        remote.fetch_pull_request.side_effect = [
            make_pr(mergeable=None),
            make_pr(mergeable=None),
            make_pr(mergeable=True),
        ]

        processor.process_item(remote, MungeObject(issue=make_issue()))
        assert sleeper.delays == [1, 2]


class TestRetryPolicy:
    def test_default_is_single_two_second_retry(self):
        assert list(RetryPolicy().delays()) == [2.0]

    def test_exponential_backoff(self):
        assert list(RetryPolicy(max_retries=3, delay_seconds=1.5, backoff=2).delays()) == [1.5, 3.0, 6.0]

    def test_no_retries(self):
        assert list(RetryPolicy(max_retries=0).delays()) == []


class TestEnrichAndDispatch:
    def test_dispatches_each_active_munger_once_in_order(self, processor, remote, calls):
        commits = [Commit(sha="abc")]
        events = [Event(id=1, event="labeled", label_name="lgtm")]
        remote.fetch_filled_commits.return_value = commits
        remote.fetch_all_events.return_value = events
        obj = MungeObject(issue=make_issue())

        assert processor.process_item(remote, obj) is MungeOutcome.DISPATCHED
        assert _munges(calls) == ["A", "B", "C"]
        assert obj.pr is not None
        assert obj.commits == commits
        assert obj.events == events

    def test_mungers_receive_enriched_object(self, remote):
        seen = []

        class Inspector(RecordingMunger):
            def munge_pull_request(self, config, obj):
                seen.append((obj.pr, obj.commits, obj.events))

        registry = MungerRegistry()
        registry.register(Inspector("inspector", []))
        registry.activate(["inspector"], MagicMock())
        remote.fetch_filled_commits.return_value = [Commit(sha="abc")]

        MungeProcessor(registry, RetryPolicy(sleep=SleepRecorder())).process_item(
            remote, MungeObject(issue=make_issue())
        )
        pr, commits, events = seen[0]
        assert pr.number == 1
        assert [c.sha for c in commits] == ["abc"]
        assert events == []

    def test_commit_fetch_failure_raises_without_dispatch(self, processor, remote, calls):
        remote.fetch_filled_commits.side_effect = GithubAPIError(500, "/commits", "boom")

        with pytest.raises(GithubAPIError):
            processor.process_item(remote, MungeObject(issue=make_issue()))
        assert _munges(calls) == []
        remote.fetch_all_events.assert_not_called()

    def test_event_fetch_failure_raises_without_dispatch(self, processor, remote, calls):
        remote.fetch_all_events.side_effect = GithubAPIError(500, "/events", "boom")

        with pytest.raises(GithubAPIError):
            processor.process_item(remote, MungeObject(issue=make_issue()))
        assert _munges(calls) == []

    def test_no_active_mungers(self, remote):
        processor = MungeProcessor(MungerRegistry(), RetryPolicy(sleep=SleepRecorder()))
        assert processor.process_item(remote, MungeObject(issue=make_issue())) is MungeOutcome.DISPATCHED
