"""
Pacing between submissions.

Usage:
    from formtasker_core.orchestration.pacing import compute_delay, interruptible_sleep

    delay = compute_delay(plan, rng, last_submission_time=state.last_submission_time)
    aborted = await interruptible_sleep(delay, abort_event)
"""

import asyncio
import logging
import random
import time
from typing import Optional

from .models import RunPlan

logger = logging.getLogger(__name__)


def compute_delay(
    plan: RunPlan,
    rng: Optional[random.Random] = None,
    last_submission_time: Optional[float] = None,
    now: Optional[float] = None,
) -> float:
    """
    Draw the pause before the next iteration.

    A base delay is drawn uniformly from [interval_min, interval_max], then
    symmetric noise of up to ``jitter * base`` is added. The result is never
    negative and never shorter than what ``rate_limit`` still requires since
    the last submission.

    Args:
        plan: Run plan with interval bounds, jitter and rate limit
        rng: Random source
        last_submission_time: time.time() of the previous submission
        now: Current time (defaults to time.time())

    Returns:
        Delay in seconds
    """
    rng = rng or random.Random()
    base = plan.interval_min + rng.random() * (plan.interval_max - plan.interval_min)
    if plan.jitter:
        base += (rng.random() - 0.5) * 2 * base * plan.jitter
    delay = max(0.0, base)

    if plan.rate_limit > 0:
        since_last = 0.0
        if last_submission_time is not None:
            since_last = (now if now is not None else time.time()) - last_submission_time
        delay = max(delay, plan.rate_limit - since_last)

    return delay


async def interruptible_sleep(seconds: float, abort_event: asyncio.Event) -> bool:
    """
    Sleep up to ``seconds``, returning early when ``abort_event`` is set.

    Returns:
        True if the sleep was interrupted by an abort
    """
    if abort_event.is_set():
        return True
    if seconds <= 0:
        return False
    try:
        await asyncio.wait_for(abort_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    logger.debug("Sleep interrupted by abort")
    return True
