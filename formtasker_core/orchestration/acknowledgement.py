"""
Submission acknowledgement detection.

After a submit, the document is polled until its visible text contains one
of the known confirmation phrases.
"""

import asyncio
import logging
import time
from typing import Optional

from ..exceptions import AcknowledgementTimeoutError
from .adapter import DocumentAdapter

logger = logging.getLogger(__name__)

ACKNOWLEDGEMENT_PHRASES = [
    "your response has been recorded",
    "thanks for your response",
    "thank you for completing this form",
    "response was recorded",
    "submit another response",
]


def is_acknowledged(text: Optional[str]) -> bool:
    lowered = (text or "").lower()
    return any(phrase in lowered for phrase in ACKNOWLEDGEMENT_PHRASES)


async def wait_for_acknowledgement(
    adapter: DocumentAdapter,
    timeout: float,
    abort_event: asyncio.Event,
    poll_interval: float = 0.25,
) -> bool:
    """
    Poll the document until an acknowledgement phrase shows up.

    Args:
        adapter: Document adapter of the running page
        timeout: Upper bound in seconds
        abort_event: Run abort flag; setting it ends the wait at once
        poll_interval: Seconds between polls

    Returns:
        True when acknowledged, False when the wait was aborted

    Raises:
        AcknowledgementTimeoutError: no phrase appeared within ``timeout``
    """
    deadline = time.monotonic() + timeout
    while True:
        if abort_event.is_set():
            return False
        if is_acknowledged(await adapter.visible_text()):
            return True

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise AcknowledgementTimeoutError(timeout)
        try:
            await asyncio.wait_for(abort_event.wait(), timeout=min(poll_interval, remaining))
        except asyncio.TimeoutError:
            continue
        logger.debug("Acknowledgement wait interrupted by abort")
        return False
