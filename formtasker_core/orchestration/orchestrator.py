"""
Submission Orchestrator - drives fill -> submit -> acknowledge -> reset cycles.

Usage:
    orchestrator = SubmissionOrchestrator(adapter)
    state = await orchestrator.start(plan, configs, on_progress=print)

    # from another task
    orchestrator.stop()
"""

import asyncio
import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import config as app_config
from ..exceptions import (
    AdapterError,
    ConcurrentRunError,
    FormTaskerError,
    LocatorResolutionError,
    ValidationError,
)
from ..mapping import Field, discover, fuzzy_match
from ..randomization import validate_field_configs
from .acknowledgement import wait_for_acknowledgement
from .adapter import DocumentAdapter
from .models import FieldConfig, FieldMode, RunError, RunPlan, RunState, RunStatus
from .pacing import compute_delay, interruptible_sleep
from .values import date_range_errors, resolve_value

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[RunState], Any]


def validate_run(plan: RunPlan, configs: Sequence[FieldConfig]) -> ValidationError:
    """
    Collect every plan, spec, probability and date-range problem.

    Returns:
        ValidationError carrying all errors (empty ``errors`` when valid)
    """
    errors = [f"plan: {e}" for e in plan.validate()]
    field_ids: List[str] = []

    problems = validate_field_configs([], configs)
    for cfg in configs:
        field_errors = list(problems.get(cfg.field_id, []))
        if cfg.mode not in FieldMode.ALL:
            field_errors.append(f"{cfg.field_id}: unknown mode {cfg.mode!r}")
        if cfg.is_random:
            field_errors.extend(date_range_errors(cfg))
        if field_errors:
            errors.extend(field_errors)
            field_ids.append(cfg.field_id)

    return ValidationError(errors, field_ids)


class SubmissionOrchestrator:
    """
    Runs one bounded submission sequence at a time.

    The instance owns its run: ``start`` refuses to begin while any
    orchestrator in the process has a run active, ``stop`` aborts it
    cooperatively. Iterations are strictly sequential; the only suspension
    points are the acknowledgement wait and the pause between iterations,
    both woken immediately by ``stop``.
    """

    # orchestrator whose run is active, process-wide
    _active: Optional["SubmissionOrchestrator"] = None

    def __init__(
        self,
        adapter: DocumentAdapter,
        run_logger=None,
        ack_poll_interval: Optional[float] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.adapter = adapter
        self.run_logger = run_logger
        self.ack_poll_interval = ack_poll_interval if ack_poll_interval is not None else app_config.ack_poll_interval
        self.rng = rng or random.Random()
        self.clock = clock
        self._state: Optional[RunState] = None
        self._abort: Optional[asyncio.Event] = None

    @property
    def state(self) -> Optional[RunState]:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is not None and self._state.is_running

    async def start(
        self,
        plan: RunPlan,
        configs: Sequence[FieldConfig],
        on_progress: Optional[ProgressCallback] = None,
    ) -> RunState:
        """
        Execute a run.

        Args:
            plan: Count, interval bounds and error policy
            configs: Per-field configurations (fixed fields are left untouched)
            on_progress: Called with a RunState snapshot after each iteration;
                may be a plain function or a coroutine function

        Returns:
            The final RunState (completed, aborted or failed)

        Raises:
            ConcurrentRunError: a run is already active in this process
            ValidationError: invalid plan, spec or probability map
        """
        if self.is_running or SubmissionOrchestrator._active is not None:
            raise ConcurrentRunError("A submission run is already in progress")

        validation = validate_run(plan, configs)
        if validation.errors:
            raise validation

        SubmissionOrchestrator._active = self

        state = RunState(
            planned=plan.count,
            is_running=True,
            status=RunStatus.RUNNING,
            started_at=self.clock(),
        )
        self._state = state
        self._abort = asyncio.Event()
        logger.info(f"Run started: {plan.count} submission(s)")

        try:
            await self._run_loop(plan, list(configs), state, on_progress)
        except Exception as e:
            logger.error(f"Run ended unexpectedly: {e}", exc_info=True)
            state.errors.append(RunError(state.current_index, str(e), self.clock()))
            state.status = RunStatus.FAILED
        finally:
            state.is_running = False
            if SubmissionOrchestrator._active is self:
                SubmissionOrchestrator._active = None
            if state.status == RunStatus.RUNNING:
                state.status = RunStatus.COMPLETED
            state.estimated_time_remaining = 0.0 if state.status == RunStatus.COMPLETED else None
            if self.run_logger:
                self.run_logger.finalize(state)

        logger.info(
            f"Run {state.status.value}: {state.completed} completed, "
            f"{state.failed} failed of {state.planned}"
        )
        return state

    def stop(self) -> Optional[RunState]:
        """Abort the active run; counts are kept as they are."""
        if self._state is None:
            return None
        if self._state.is_running and self._abort is not None:
            logger.info(f"Stop requested at iteration {self._state.current_index}")
            self._abort.set()
            self._state.status = RunStatus.ABORTED
        return self._state

    # --- Run loop ---

    def _aborted(self) -> bool:
        return self._abort is not None and self._abort.is_set()

    async def _run_loop(
        self,
        plan: RunPlan,
        configs: List[FieldConfig],
        state: RunState,
        on_progress: Optional[ProgressCallback],
    ):
        for i in range(plan.count):
            if self._aborted():
                break
            state.current_index = i + 1
            if self.run_logger:
                self.run_logger.log_heading(f"Iteration {i + 1}")

            failed = False
            try:
                acknowledged = await self._run_iteration(plan, configs, state)
            except FormTaskerError as e:
                self._record_failure(state, str(e), getattr(e, "field_id", None))
                failed = True
            except Exception as e:
                logger.error(f"Iteration {i + 1} failed: {e}", exc_info=True)
                self._record_failure(state, str(e), None)
                failed = True
            else:
                if not acknowledged:
                    break
                state.completed += 1
                if self.run_logger:
                    self.run_logger.log_success(f"Submission {i + 1} acknowledged")

            state.estimated_time_remaining = self._estimate_remaining(plan, state)
            await self._notify(on_progress, state)

            if failed and plan.stop_on_error:
                state.status = RunStatus.FAILED
                break
            if i == plan.count - 1:
                break

            delay = compute_delay(plan, self.rng, state.last_submission_time, self.clock())
            logger.debug(f"Waiting {delay:.2f}s before next submission")
            if await interruptible_sleep(delay, self._abort):
                break
            await self._reset()

    async def _run_iteration(self, plan: RunPlan, configs: List[FieldConfig], state: RunState) -> bool:
        """One fill -> submit -> acknowledge cycle; False when aborted while waiting."""
        fields = discover(await self.adapter.snapshot())
        by_id = {f.id: f for f in fields}

        written: Dict[str, Any] = {}
        for cfg in configs:
            if not cfg.is_random:
                continue
            field = self._match_field(cfg, fields, by_id)
            value = resolve_value(field, cfg, self.rng)
            if value is None:
                logger.debug(f"No value for {field.id}, leaving it untouched")
                continue
            try:
                await self.adapter.write_value(field, value)
            except AdapterError:
                raise
            except Exception as e:
                raise AdapterError(f"Write failed for {field.id}: {e}", field_id=field.id) from e
            written[field.label] = value

        if self.run_logger and written:
            self.run_logger.log_values(written)

        await self.adapter.submit()
        state.last_submission_time = self.clock()
        return await wait_for_acknowledgement(
            self.adapter,
            timeout=plan.ack_timeout,
            abort_event=self._abort,
            poll_interval=self.ack_poll_interval,
        )

    def _match_field(self, cfg: FieldConfig, fields: List[Field], by_id: Dict[str, Field]) -> Field:
        field = by_id.get(cfg.field_id)
        if field is not None:
            return field
        if cfg.label:
            match = fuzzy_match(cfg.label, [f.label for f in fields])
            if match is not None:
                field = next(f for f in fields if f.label == match)
                logger.info(f"Field {cfg.field_id!r} re-matched by label to {field.id!r}")
                if self.run_logger:
                    self.run_logger.log_warning(f"Field {cfg.field_id} re-matched by label to {field.id}")
                return field
        raise LocatorResolutionError(cfg.field_id)

    def _record_failure(self, state: RunState, message: str, field_id: Optional[str]):
        logger.warning(f"Iteration {state.current_index} failed: {message}")
        state.failed += 1
        state.errors.append(RunError(state.current_index, message, self.clock(), field_id))
        if self.run_logger:
            self.run_logger.log_error(message)

    async def _reset(self):
        try:
            await self.adapter.reset()
        except Exception as e:
            logger.warning(f"Document reset failed: {e}")
            if self.run_logger:
                self.run_logger.log_warning(f"Document reset failed: {e}")

    async def _notify(self, on_progress: Optional[ProgressCallback], state: RunState):
        if on_progress is None:
            return
        try:
            result = on_progress(state.snapshot())
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    def _estimate_remaining(self, plan: RunPlan, state: RunState) -> Optional[float]:
        remaining = plan.count - state.processed
        if remaining <= 0:
            return 0.0
        if state.completed == 0:
            return remaining * (plan.interval_min + plan.interval_max) / 2
        elapsed = self.clock() - state.started_at
        return elapsed / state.completed * remaining
