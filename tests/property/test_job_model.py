"""Property-based tests for the job status lifecycle.

Status writes only move forward; failed is reachable from any non-terminal
status; completed and failed accept no further writes.
"""

from hypothesis import given, settings, strategies as st

from clipcheck.models.job import (
    STATUS_ORDER,
    TERMINAL_STATUSES,
    JobRecord,
    JobStatus,
    can_transition,
    is_terminal,
)


statuses = st.sampled_from(list(JobStatus))
non_terminal = st.sampled_from([s for s in JobStatus if s not in TERMINAL_STATUSES])
terminal = st.sampled_from(sorted(TERMINAL_STATUSES, key=lambda s: s.value))


class TestStatusTransitions:
    @given(current=terminal, requested=statuses)
    @settings(max_examples=100)
    def test_terminal_status_accepts_nothing(self, current: JobStatus, requested: JobStatus) -> None:
        assert can_transition(current.value, requested.value) is False

    @given(current=non_terminal)
    @settings(max_examples=50)
    def test_failed_reachable_from_any_non_terminal(self, current: JobStatus) -> None:
        assert can_transition(current.value, JobStatus.FAILED.value) is True

    @given(current=non_terminal, requested=statuses)
    @settings(max_examples=200)
    def test_only_forward_moves_allowed(self, current: JobStatus, requested: JobStatus) -> None:
        if requested == JobStatus.FAILED:
            return
        expected = STATUS_ORDER.index(requested) > STATUS_ORDER.index(current)
        assert can_transition(current.value, requested.value) is expected

    def test_same_status_is_not_a_transition(self) -> None:
        for status in STATUS_ORDER:
            assert can_transition(status.value, status.value) is False

    def test_simulation_may_skip_stage_markers(self) -> None:
        assert can_transition("processing", "completed") is True

    def test_backward_move_rejected(self) -> None:
        assert can_transition("transcribe_done", "capture_done") is False

    def test_is_terminal(self) -> None:
        assert is_terminal("completed")
        assert is_terminal("failed")
        assert not is_terminal("detect_done")


class TestJobRecord:
    def test_defaults(self) -> None:
        record = JobRecord(id="job-1", source_reference="https://youtu.be/abc123")

        assert record.status == "pending"
        assert record.created_at
        assert record.updated_at
        assert record.transcription is None
        assert record.ai_probabilities is None
        assert record.error_message is None
