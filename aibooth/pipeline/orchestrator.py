"""
Job Orchestrator

Drives one submit request end to end, synchronously with respect to the
caller:

1. Validate prompt and photo
2. Decode, normalize and upload the photo
3. Submit the prediction
4. Poll until a terminal status
5. Record the outcome in the session store and publish the snapshot

Steps 1-4 surface their errors unchanged. Step 5's publish is best-effort:
its failure is logged and discarded.
"""

import time
from typing import Optional

from aibooth.core.config import settings
from aibooth.core.exceptions import BoothBaseException, UpstreamIOError, ValidationError
from aibooth.core.logging import get_logger, LogContext
from aibooth.core.metrics import (
    record_job_started,
    record_job_completion,
    record_snapshot_publish,
    track_stage_latency,
)
from aibooth.core.publisher import ISnapshotPublisher
from aibooth.core.storage import IStorage
from aibooth.engines.prediction.client import PredictionClient
from aibooth.engines.prediction.poller import ResultPoller
from aibooth.modules.sessions.models import JobOutcome, JobSubmission
from aibooth.modules.sessions.store import SessionStore
from aibooth.pipeline.stages import decode_photo, normalize_stage, upload_stage

logger = get_logger(__name__)


class JobOrchestrator:
    """Coordinates storage, predictor, poller, session store and publisher."""

    def __init__(
        self,
        storage: IStorage,
        prediction_client: PredictionClient,
        poller: ResultPoller,
        session_store: SessionStore,
        publisher: ISnapshotPublisher,
        image_size: int = 512,
        upload_folder: str = "ai-booth",
        results_path: str = "results.json",
        max_image_size_bytes: Optional[int] = None
    ):
        self.storage = storage
        self.prediction_client = prediction_client
        self.poller = poller
        self.session_store = session_store
        self.publisher = publisher
        self.image_size = image_size
        self.upload_folder = upload_folder
        self.results_path = results_path
        self.max_image_size_bytes = max_image_size_bytes or settings.MAX_IMAGE_SIZE_BYTES

    def validate(self, prompt: Optional[str], photo: Optional[str]) -> None:
        if not prompt or not photo:
            raise ValidationError("Missing prompt or photo")

        decoded_size_bytes = len(photo) * 3 / 4
        if decoded_size_bytes > self.max_image_size_bytes:
            raise ValidationError(
                f"Image size ({decoded_size_bytes / (1024 * 1024):.2f}MB) exceeds maximum "
                f"allowed size ({self.max_image_size_bytes / (1024 * 1024):.0f}MB)"
            )

    async def prepare_source(self, identifier: Optional[str], photo: str) -> str:
        """Decode, normalize and upload the photo; any failure is an UpstreamIOError."""
        try:
            raw = decode_photo(photo)
            normalized = await normalize_stage(raw, self.image_size)
            return await upload_stage(
                self.storage,
                normalized,
                f"{identifier or 'booth'}.png",
                self.upload_folder
            )
        except UpstreamIOError:
            raise
        except Exception as e:
            raise UpstreamIOError(f"Source image processing failed: {e}")

    async def run(
        self,
        identifier: Optional[str],
        prompt: Optional[str],
        photo: Optional[str]
    ) -> JobOutcome:
        """
        Process one submit request.

        Raises:
            ValidationError: missing prompt or photo (nothing else is called)
            UpstreamIOError: decode/normalize/upload failed
            SubmissionError: predictor rejected the job
            PredictionFailedError: predictor reported an error
            PollTimeoutError: no terminal status within the polling budget
        """
        start = time.time()

        with LogContext(job_id=identifier, stage="validation") as ctx:
            self.validate(prompt, photo)

            logger.info(
                "job_received",
                prompt_length=len(prompt),
                photo_size_kb=round(len(photo) * 3 / 4 / 1024, 1)
            )
            record_job_started()

            stage = "upload"
            try:
                ctx.set_stage(stage)
                image_url = await self.prepare_source(identifier, photo)

                submission = JobSubmission(identifier=identifier, prompt=prompt, image_url=image_url)

                stage = "predict"
                ctx.set_stage(stage)
                with track_stage_latency(stage):
                    token = await self.prediction_client.submit(submission.prompt, submission.image_url)

                stage = "poll"
                ctx.set_stage(stage)
                with track_stage_latency(stage):
                    result_url = await self.poller.run(token)

                stage = "finalize"
                ctx.set_stage(stage)
                outcome = JobOutcome(
                    identifier=submission.identifier,
                    prompt=submission.prompt,
                    image_url=result_url
                )
                self.session_store.insert(identifier or "", outcome)
            except BoothBaseException as e:
                record_job_completion("failed", time.time() - start, failure_stage=stage)
                logger.error("job_failed", error=e.message, error_type=type(e).__name__)
                raise
            except Exception:
                record_job_completion("failed", time.time() - start, failure_stage=stage)
                raise

            await self.publish_snapshot(outcome)

            duration = time.time() - start
            record_job_completion("completed", duration)
            logger.info("job_completed", image=result_url, duration_seconds=round(duration, 2))

            return outcome

    async def publish_snapshot(self, outcome: JobOutcome) -> None:
        """Commit the outcome snapshot; failures never reach the caller."""
        if not self.publisher.enabled:
            record_snapshot_publish("skipped")
            return

        try:
            await self.publisher.publish(
                self.results_path,
                outcome.to_snapshot(),
                f"chore: result for {outcome.identifier}"
            )
            record_snapshot_publish("success")
        except Exception as e:
            record_snapshot_publish("error")
            logger.error(
                "snapshot_publish_failed",
                path=self.results_path,
                error=str(e),
                error_type=type(e).__name__
            )
