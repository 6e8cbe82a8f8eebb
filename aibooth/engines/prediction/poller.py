"""
Result Poller

Turns a prediction token into the result image URL by checking status at
a fixed cadence. The attempt count is fixed up front as
ceil(timeout / interval); slow status requests therefore stretch real
elapsed time past the nominal timeout but never add attempts.
"""

import math
import asyncio
from typing import Any, Awaitable, Callable, Dict

from aibooth.core.exceptions import PredictionFailedError, PollTimeoutError
from aibooth.core.logging import get_logger
from aibooth.core.metrics import record_prediction_poll
from aibooth.engines.prediction.schemas import PredictionStatus, extract_output

logger = get_logger(__name__)

StatusCheck = Callable[[str], Awaitable[Dict[str, Any]]]
Sleep = Callable[[float], Awaitable[Any]]


class ResultPoller:
    """Fixed-attempt polling over an injectable status check and sleep."""

    def __init__(
        self,
        check_status: StatusCheck,
        interval_seconds: float = 3.0,
        timeout_seconds: float = 180.0,
        sleep: Sleep = asyncio.sleep
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self.check_status = check_status
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self.sleep = sleep

    @property
    def max_attempts(self) -> int:
        return math.ceil(self.timeout_seconds / self.interval_seconds)

    async def run(self, token: str) -> str:
        """
        Poll until success, error, or exhaustion.

        Every attempt waits one interval before asking, so the status is
        never checked right after submission.

        Returns:
            Result image URL

        Raises:
            PredictionFailedError: predictor reported error, or success
                without a non-empty string output
            PollTimeoutError: max_attempts checks without a terminal state
        """
        max_attempts = self.max_attempts

        for attempt in range(1, max_attempts + 1):
            await self.sleep(self.interval_seconds)
            payload = await self.check_status(token)
            status = payload.get("status")

            logger.info(
                "prediction_poll",
                prediction_id=token,
                attempt=attempt,
                max_attempts=max_attempts,
                status=status
            )
            record_prediction_poll(status)

            if status == PredictionStatus.SUCCESS.value:
                output = extract_output(payload)
                if not isinstance(output, str) or not output:
                    raise PredictionFailedError(
                        "Eachlabs reported success without a usable output",
                        payload=payload
                    )
                logger.info("prediction_succeeded", prediction_id=token, attempts=attempt, output=output)
                return output

            if status == PredictionStatus.ERROR.value:
                logger.warning("prediction_failed", prediction_id=token, attempts=attempt)
                raise PredictionFailedError(f"Eachlabs failed: {payload}", payload=payload)

        logger.warning("prediction_poll_timeout", prediction_id=token, attempts=max_attempts)
        raise PollTimeoutError(
            "Timeout waiting for Eachlabs result",
            attempts=max_attempts
        )
