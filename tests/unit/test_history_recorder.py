"""Unit tests for HistoryRecorder change suppression.

The insert query functions are mocked; these tests only check when a row
is written and with which values.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from waymark.database.models.history import ChangeReason
from waymark.database.models.phase import PhaseStatus
from waymark.roadmap.history import HistoryRecorder

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def insert_phase() -> AsyncMock:
    with patch("waymark.roadmap.history.insert_phase_history", new_callable=AsyncMock) as mock:
        yield mock


@pytest.fixture
def insert_milestone() -> AsyncMock:
    with patch(
        "waymark.roadmap.history.insert_milestone_history", new_callable=AsyncMock
    ) as mock:
        yield mock


class TestProgressChanged:
    @pytest.mark.parametrize(
        ("previous", "new", "expected"),
        [
            (None, 0.0, False),
            (None, 50.0, True),
            (50.0, 50.0, False),
            (50.0, 50.01, False),
            (50.0, 50.02, True),
            (33.33, 33.34, False),
            (33.34, 33.33, False),
            (1.0, 1.01, False),
            (66.67, 33.33, True),
        ],
    )
    def test_default_tolerance(self, previous: float | None, new: float, expected: bool) -> None:
        assert HistoryRecorder().progress_changed(previous, new) is expected

    def test_custom_tolerance(self) -> None:
        recorder = HistoryRecorder(progress_tolerance=5.0)
        assert recorder.progress_changed(50.0, 54.0) is False
        assert recorder.progress_changed(50.0, 56.0) is True


class TestRecordPhaseProgress:
    async def test_writes_row_for_real_change(
        self, session: MagicMock, insert_phase: AsyncMock
    ) -> None:
        phase_id = uuid4()
        result = await HistoryRecorder().record_phase_progress(
            session, phase_id, 25.0, 50.0, NOW
        )

        assert result is insert_phase.return_value
        insert_phase.assert_awaited_once_with(
            session,
            phase_id=phase_id,
            change_reason=ChangeReason.auto_calculated,
            changed_at=NOW,
            progress_percentage=50.0,
            previous_progress=25.0,
        )

    async def test_none_previous_recorded_as_zero(
        self, session: MagicMock, insert_phase: AsyncMock
    ) -> None:
        await HistoryRecorder().record_phase_progress(session, uuid4(), None, 50.0, NOW)
        assert insert_phase.await_args.kwargs["previous_progress"] == 0.0

    async def test_suppresses_noop(self, session: MagicMock, insert_phase: AsyncMock) -> None:
        result = await HistoryRecorder().record_phase_progress(session, uuid4(), 50.0, 50.0, NOW)
        assert result is None
        insert_phase.assert_not_awaited()

    async def test_manual_reason(self, session: MagicMock, insert_phase: AsyncMock) -> None:
        await HistoryRecorder().record_phase_progress(
            session, uuid4(), 0.0, 10.0, NOW, reason=ChangeReason.manual
        )
        assert insert_phase.await_args.kwargs["change_reason"] == ChangeReason.manual


class TestRecordPhaseStatus:
    async def test_writes_row_for_change(
        self, session: MagicMock, insert_phase: AsyncMock
    ) -> None:
        phase_id = uuid4()
        await HistoryRecorder().record_phase_status(
            session, phase_id, PhaseStatus.in_progress, PhaseStatus.completed, NOW
        )
        insert_phase.assert_awaited_once_with(
            session,
            phase_id=phase_id,
            change_reason=ChangeReason.auto_calculated,
            changed_at=NOW,
            status=PhaseStatus.completed,
            previous_status=PhaseStatus.in_progress,
        )

    async def test_suppresses_same_status(
        self, session: MagicMock, insert_phase: AsyncMock
    ) -> None:
        result = await HistoryRecorder().record_phase_status(
            session, uuid4(), PhaseStatus.delayed, PhaseStatus.delayed, NOW
        )
        assert result is None
        insert_phase.assert_not_awaited()


class TestRecordMilestoneCompletion:
    async def test_writes_row_when_flag_flips(
        self, session: MagicMock, insert_milestone: AsyncMock
    ) -> None:
        milestone = SimpleNamespace(
            id=uuid4(), phase_id=uuid4(), is_completed=True, completed_date=NOW
        )
        await HistoryRecorder().record_milestone_completion(session, milestone, False, NOW)

        kwargs = insert_milestone.await_args.kwargs
        assert kwargs["milestone_id"] == milestone.id
        assert kwargs["phase_id"] == milestone.phase_id
        assert kwargs["is_completed"] is True
        assert kwargs["previous_completed"] is False
        assert kwargs["completed_date"] == NOW
        assert kwargs["change_reason"] == ChangeReason.manual

    async def test_suppresses_unchanged_flag(
        self, session: MagicMock, insert_milestone: AsyncMock
    ) -> None:
        milestone = SimpleNamespace(
            id=uuid4(), phase_id=uuid4(), is_completed=False, completed_date=None
        )
        result = await HistoryRecorder().record_milestone_completion(
            session, milestone, False, NOW
        )
        assert result is None
        insert_milestone.assert_not_awaited()
