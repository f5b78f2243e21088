"""
Tests for the Submission Orchestrator

Runs against the in-memory document adapter; no browser needed.
"""

import asyncio
import random

import pytest

from formtasker_core.exceptions import ConcurrentRunError, ValidationError
from formtasker_core.orchestration import (
    FieldConfig,
    RunPlan,
    RunStatus,
    SubmissionOrchestrator,
)
from formtasker_core.randomization import ExpressionSpec, FixedSpec, RangeSpec
from formtasker_core.run_logger import RunLogger
from mocks import FakeDocumentAdapter


def fast_plan(**overrides) -> RunPlan:
    values = dict(count=3, interval_min=0, interval_max=0, ack_timeout=1.0)
    values.update(overrides)
    return RunPlan(**values)


def make_orchestrator(adapter, **kwargs) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(adapter, ack_poll_interval=0.01, rng=random.Random(42), **kwargs)


async def wait_until(predicate, timeout: float = 2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.005)


class TestRun:
    """Test complete runs."""

    @pytest.mark.asyncio
    async def test_three_submissions_with_fixed_range(self):
        adapter = FakeDocumentAdapter()
        orchestrator = make_orchestrator(adapter)
        configs = [FieldConfig(field_id="111", mode="random", spec=RangeSpec(min=1, max=1))]

        state = await orchestrator.start(fast_plan(), configs)

        assert state.status == RunStatus.COMPLETED
        assert state.completed == 3
        assert state.failed == 0
        assert state.current_index == 3
        assert state.is_running is False
        assert state.errors == []
        assert adapter.writes == [("111", 1)] * 3
        assert adapter.submissions == 3
        assert adapter.resets == 2
        assert adapter.snapshots == 3
        assert not orchestrator.is_running

    @pytest.mark.asyncio
    async def test_fixed_fields_untouched(self):
        adapter = FakeDocumentAdapter()
        configs = [
            FieldConfig(field_id="111", mode="fixed", spec=FixedSpec(value="ignored")),
            FieldConfig(field_id="222", mode="random"),
        ]

        state = await make_orchestrator(adapter).start(fast_plan(count=2), configs)

        assert state.completed == 2
        assert [field_id for field_id, _ in adapter.writes] == ["222", "222"]
        assert all(value in ("Red", "Green", "Blue") for _, value in adapter.writes)

    @pytest.mark.asyncio
    async def test_all_families_written(self):
        adapter = FakeDocumentAdapter()
        configs = [
            FieldConfig(field_id="111", mode="random", text_options="Ann<and>Bob"),
            FieldConfig(field_id="222", mode="random", probabilities={"Red": 0, "Green": 100, "Blue": 0}),
            FieldConfig(field_id="333", mode="random"),
            FieldConfig(field_id="444", mode="random", grid_probabilities={"0": {"Poor": 100, "Good": 0}}),
            FieldConfig(field_id="555", mode="random", date_range=("2024-03-01", "2024-03-01")),
        ]

        await make_orchestrator(adapter).start(fast_plan(count=1), configs)

        written = dict(adapter.writes)
        assert written["111"] in ("Ann", "Bob")
        assert written["222"] == "Green"
        assert written["333"] in ("1", "2", "3", "4", "5")
        assert written["444"]["Food"] == "Poor"
        assert written["444"]["Service"] in ("Poor", "Good")
        assert written["555"] == "2024-03-01"

    @pytest.mark.asyncio
    async def test_progress_callbacks_receive_snapshots(self):
        adapter = FakeDocumentAdapter()
        seen = []

        async def on_progress(state):
            seen.append(state)

        state = await make_orchestrator(adapter).start(fast_plan(), [], on_progress=on_progress)

        assert [s.completed for s in seen] == [1, 2, 3]
        assert [s.current_index for s in seen] == [1, 2, 3]
        assert all(s is not state for s in seen)
        assert seen[-1].estimated_time_remaining == 0.0

    @pytest.mark.asyncio
    async def test_failing_progress_callback_does_not_end_run(self):
        def on_progress(state):
            raise RuntimeError("display gone")

        state = await make_orchestrator(FakeDocumentAdapter()).start(fast_plan(), [], on_progress=on_progress)
        assert state.completed == 3


class TestValidation:
    """Test up-front validation."""

    @pytest.mark.asyncio
    async def test_probability_sum_99_rejected(self):
        adapter = FakeDocumentAdapter()
        orchestrator = make_orchestrator(adapter)
        configs = [FieldConfig(field_id="222", mode="random", label="Favourite colour",
                               probabilities={"Red": 33, "Green": 33, "Blue": 33})]

        with pytest.raises(ValidationError) as exc:
            await orchestrator.start(fast_plan(), configs)

        assert exc.value.field_ids == ["222"]
        assert any("Favourite colour" in e for e in exc.value.errors)
        assert orchestrator.state is None
        assert adapter.snapshots == 0

    @pytest.mark.asyncio
    async def test_bad_plan_rejected(self):
        orchestrator = make_orchestrator(FakeDocumentAdapter())
        with pytest.raises(ValidationError) as exc:
            await orchestrator.start(RunPlan(count=0, interval_min=5, interval_max=1), [])
        assert len(exc.value.errors) == 2

    @pytest.mark.asyncio
    async def test_bad_spec_and_date_range_rejected(self):
        configs = [
            FieldConfig(field_id="111", mode="random", spec=RangeSpec(min=9, max=1)),
            FieldConfig(field_id="555", mode="random", date_range=("2024-13-01", "2024-01-01")),
        ]
        with pytest.raises(ValidationError) as exc:
            await make_orchestrator(FakeDocumentAdapter()).start(fast_plan(), configs)
        assert exc.value.field_ids == ["111", "555"]


class TestConcurrencyAndAbort:
    """Test run exclusivity and cooperative cancellation."""

    @pytest.mark.asyncio
    async def test_concurrent_start_rejected(self):
        adapter = FakeDocumentAdapter()
        orchestrator = make_orchestrator(adapter)
        task = asyncio.create_task(orchestrator.start(fast_plan(count=3, interval_min=5, interval_max=5), []))
        await wait_until(lambda: adapter.submissions == 1)
        running = orchestrator.state
        before = running.to_dict()

        with pytest.raises(ConcurrentRunError):
            await orchestrator.start(fast_plan(), [])

        assert orchestrator.state is running
        assert running.to_dict() == before
        assert running.status == RunStatus.RUNNING
        assert adapter.submissions == 1

        orchestrator.stop()
        state = await asyncio.wait_for(task, timeout=1.0)
        assert state.status == RunStatus.ABORTED

    @pytest.mark.asyncio
    async def test_second_orchestrator_rejected_while_run_active(self):
        adapter = FakeDocumentAdapter()
        first = make_orchestrator(adapter)
        second = make_orchestrator(adapter)
        task = asyncio.create_task(first.start(fast_plan(count=3, interval_min=5, interval_max=5), []))
        await wait_until(lambda: adapter.submissions == 1)
        before = first.state.to_dict()

        with pytest.raises(ConcurrentRunError):
            await second.start(fast_plan(count=1), [])

        assert second.state is None
        assert first.state.to_dict() == before
        assert adapter.submissions == 1

        first.stop()
        await asyncio.wait_for(task, timeout=1.0)

        state = await second.start(fast_plan(count=1), [])
        assert state.status == RunStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_stop_during_sleep_freezes_index(self):
        adapter = FakeDocumentAdapter()
        orchestrator = make_orchestrator(adapter)
        task = asyncio.create_task(orchestrator.start(fast_plan(count=5, interval_min=10, interval_max=10), []))
        await wait_until(lambda: adapter.submissions == 1)

        returned = orchestrator.stop()
        state = await asyncio.wait_for(task, timeout=1.0)

        assert returned is state
        assert state.status == RunStatus.ABORTED
        assert state.current_index == 1
        assert state.completed == 1
        assert state.is_running is False
        assert adapter.resets == 0

    @pytest.mark.asyncio
    async def test_stop_during_acknowledgement_wait(self):
        adapter = FakeDocumentAdapter(acknowledge=False)
        orchestrator = make_orchestrator(adapter)
        task = asyncio.create_task(orchestrator.start(fast_plan(count=2, ack_timeout=30), []))
        await wait_until(lambda: adapter.submissions == 1)

        orchestrator.stop()
        state = await asyncio.wait_for(task, timeout=1.0)

        assert state.status == RunStatus.ABORTED
        assert state.completed == 0
        assert state.failed == 0

    @pytest.mark.asyncio
    async def test_stop_without_run(self):
        assert make_orchestrator(FakeDocumentAdapter()).stop() is None

    @pytest.mark.asyncio
    async def test_orchestrator_reusable_after_run(self):
        orchestrator = make_orchestrator(FakeDocumentAdapter())
        first = await orchestrator.start(fast_plan(count=1), [])
        second = await orchestrator.start(fast_plan(count=1), [])
        assert first is not second
        assert second.status == RunStatus.COMPLETED


class TestErrors:
    """Test the error policy."""

    @pytest.mark.asyncio
    async def test_stop_on_error(self):
        adapter = FakeDocumentAdapter(fail_writes={"111"})
        configs = [FieldConfig(field_id="111", mode="random", spec=FixedSpec(value="x"))]

        state = await make_orchestrator(adapter).start(fast_plan(stop_on_error=True), configs)

        assert state.status == RunStatus.FAILED
        assert state.failed == 1
        assert state.completed == 0
        assert state.current_index == 1
        assert state.errors[0].field_id == "111"
        assert state.errors[0].iteration_index == 1
        assert adapter.submissions == 0

    @pytest.mark.asyncio
    async def test_errors_recorded_and_run_continues(self):
        adapter = FakeDocumentAdapter(fail_submits={2})

        state = await make_orchestrator(adapter).start(fast_plan(), [])

        assert state.status == RunStatus.COMPLETED
        assert state.completed == 2
        assert state.failed == 1
        assert [e.iteration_index for e in state.errors] == [2]

    @pytest.mark.asyncio
    async def test_acknowledgement_timeout_is_failure(self):
        adapter = FakeDocumentAdapter(acknowledge=False)

        state = await make_orchestrator(adapter).start(fast_plan(count=1, ack_timeout=0.05), [])

        assert state.failed == 1
        assert "Acknowledgement timeout" in state.errors[0].message

    @pytest.mark.asyncio
    async def test_slow_acknowledgement_still_counts(self):
        adapter = FakeDocumentAdapter(ack_after_polls=3)
        state = await make_orchestrator(adapter).start(fast_plan(count=1), [])
        assert state.completed == 1

    @pytest.mark.asyncio
    async def test_renamed_field_rematched_by_label(self):
        adapter = FakeDocumentAdapter()
        configs = [FieldConfig(field_id="old-id", mode="random", label="Your name!",
                               spec=FixedSpec(value="Ann"))]

        state = await make_orchestrator(adapter).start(fast_plan(count=1), configs)

        assert state.completed == 1
        assert adapter.writes == [("111", "Ann")]

    @pytest.mark.asyncio
    async def test_unresolvable_field_is_failure(self):
        adapter = FakeDocumentAdapter()
        configs = [FieldConfig(field_id="zzz", mode="random", label="Shoe size",
                               spec=FixedSpec(value="42"))]

        state = await make_orchestrator(adapter).start(fast_plan(count=1), configs)

        assert state.failed == 1
        assert state.errors[0].field_id == "zzz"
        assert adapter.submissions == 0


    @pytest.mark.asyncio
    async def test_failed_generation_skips_write_without_failing(self):
        adapter = FakeDocumentAdapter()
        configs = [FieldConfig(field_id="111", mode="random", spec=ExpressionSpec(source="-" * 1500 + "1"))]
        plan = fast_plan(count=1, stop_on_error=True)

        state = await make_orchestrator(adapter).start(plan, configs)

        assert state.status == RunStatus.COMPLETED
        assert state.completed == 1
        assert state.failed == 0
        assert adapter.writes == []


class TestRunLog:
    """Test run log integration."""

    @pytest.mark.asyncio
    async def test_markdown_log_written(self, tmp_path):
        plan = fast_plan(count=2)
        run_logger = RunLogger(url="https://example.com/form", plan=plan, log_dir=str(tmp_path), session_id="t1")
        adapter = FakeDocumentAdapter(fail_submits={2})
        configs = [FieldConfig(field_id="111", mode="random", spec=FixedSpec(value="Ann"))]

        await make_orchestrator(adapter, run_logger=run_logger).start(plan, configs)

        content = (tmp_path / "run-t1.md").read_text(encoding="utf-8")
        assert "## Iteration 1" in content
        assert "## Iteration 2" in content
        assert "| Your name | Ann" in content
        assert "Submit button not found" in content
        assert "**Status:** completed" in content
        assert "- [Summary](#summary)" in content

    @pytest.mark.asyncio
    async def test_label_rematch_logged_as_warning(self, tmp_path):
        plan = fast_plan(count=1)
        run_logger = RunLogger(log_dir=str(tmp_path), session_id="t2")
        configs = [FieldConfig(field_id="old-id", mode="random", label="Your name",
                               spec=FixedSpec(value="Ann"))]

        await make_orchestrator(FakeDocumentAdapter(), run_logger=run_logger).start(plan, configs)

        content = (tmp_path / "run-t2.md").read_text(encoding="utf-8")
        assert "**WARNING:** Field old-id re-matched by label to 111" in content
