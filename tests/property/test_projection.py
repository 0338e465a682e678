"""Property-based tests for mapping stored records to client views."""

import json

from hypothesis import given, settings, strategies as st

from clipcheck.models.job import JobRecord, JobStatus
from clipcheck.models.result import CompletedView, FailedView, InProgressView
from clipcheck.services.projection import client_status, project_record, summarize_record


in_flight = st.sampled_from(
    [s.value for s in JobStatus if s not in (JobStatus.COMPLETED, JobStatus.FAILED)]
)


def record(status: str, **fields) -> JobRecord:
    return JobRecord(id="job-1", source_reference="https://youtu.be/abc123", status=status, **fields)


class TestClientStatus:
    @given(status=in_flight)
    @settings(max_examples=20)
    def test_intermediate_statuses_read_as_processing(self, status: str) -> None:
        assert client_status(status) == "processing"
        view = project_record(record(status, snapshot_path="a.png"))
        assert isinstance(view, InProgressView)
        assert "snapshot_path" not in view.model_dump()

    def test_terminal_statuses_pass_through(self) -> None:
        assert client_status("completed") == "completed"
        assert client_status("failed") == "failed"


class TestProjectRecord:
    def test_failed_view(self) -> None:
        view = project_record(
            record("failed", error_message="Audio transcoding failed: bad codec", processing_time_ms=40)
        )

        assert isinstance(view, FailedView)
        assert view.error_message == "Audio transcoding failed: bad codec"
        assert view.processing_time_ms == 40

    def test_completed_view_parses_payloads(self) -> None:
        view = project_record(
            record(
                "completed",
                transcription='{"text": "hi", "segments": []}',
                ai_probabilities='{"overall_ai_probability": 0.25}',
                processing_time_ms=1200,
            )
        )

        assert isinstance(view, CompletedView)
        assert view.transcription == {"text": "hi", "segments": []}
        assert view.ai_probabilities == {"overall_ai_probability": 0.25}
        assert view.source_reference == "https://youtu.be/abc123"

    def test_unparseable_payload_becomes_none(self) -> None:
        view = project_record(
            record("completed", transcription="{not json", ai_probabilities='{"overall_ai_probability": 0.5}')
        )

        assert view.transcription is None
        assert view.ai_probabilities == {"overall_ai_probability": 0.5}

    @given(
        payload=st.one_of(
            st.lists(st.integers(), max_size=3),
            st.text(max_size=10),
            st.integers(),
            st.booleans(),
            st.none(),
        )
    )
    @settings(max_examples=50)
    def test_non_object_payload_becomes_none(self, payload) -> None:
        view = project_record(
            record(
                "completed",
                transcription=json.dumps(payload),
                ai_probabilities='"oops"',
            )
        )

        assert isinstance(view, CompletedView)
        assert view.transcription is None
        assert view.ai_probabilities is None

    def test_summary_has_no_payloads(self) -> None:
        summary = summarize_record(record("transcode_done", audio_path="a.wav"))

        assert summary.status == "processing"
        assert set(summary.model_dump()) == {
            "id",
            "source_reference",
            "status",
            "created_at",
            "updated_at",
            "processing_time_ms",
        }
