"""Celebration video generation: submit a Veo job, poll it, fetch the result."""

import asyncio
import base64
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from .client import GeminiAPIError, GeminiClient, Operation
from .credentials import KeySelector

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_PROMPT = (
    "Animate this character celebrating a goal achievement in a vibrant cinematic style."
)
ASPECT_RATIOS = ("16:9", "9:16")

CREDENTIAL_MESSAGE = "API Key issue. Please re-select your key."
GENERIC_MESSAGE = "Generation failed. Please try again."
TIMEOUT_MESSAGE = "Generation timed out. Please try again."
CANCELLED_MESSAGE = "Generation cancelled."


class JobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"


class VideoErrorKind(str, Enum):
    CREDENTIAL = "credential"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    GENERIC = "generic"


class VideoGenerationError(Exception):
    """A video job that ended without a usable video."""

    def __init__(self, kind: VideoErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class AnimatorBusyError(Exception):
    """Raised when a job is submitted while another is still running."""


@dataclass
class VideoJob:
    """One invocation of the video protocol."""
    image_b64: str
    prompt: str
    aspect_ratio: str = "16:9"
    mime_type: str = "image/png"
    cancel: Optional[asyncio.Event] = None

    state: JobState = JobState.SUBMITTED
    operation: Optional[Operation] = None
    polls: int = 0
    error: Optional[VideoGenerationError] = field(default=None, repr=False)


def encode_image(image: Union[bytes, str], mime_type: str = "image/png") -> tuple[str, str]:
    """
    Normalize an uploaded image to (base64 text, MIME type).

    Accepts raw bytes, bare base64 text or a ``data:<mime>;base64,<data>`` URL.
    """
    if isinstance(image, bytes):
        return base64.b64encode(image).decode("ascii"), mime_type

    if image.startswith("data:") and "," in image:
        header, data = image.split(",", 1)
        declared = header[len("data:"):].split(";")[0]
        return data, declared or mime_type

    return image, mime_type


def _classify(error: GeminiAPIError) -> VideoGenerationError:
    if error.is_not_found:
        return VideoGenerationError(VideoErrorKind.CREDENTIAL, error.message)
    return VideoGenerationError(VideoErrorKind.GENERIC, error.message)


class VideoClient:
    """
    Drives a video job through submitted -> polling -> done/failed.

    Status checks are strictly sequential: the delay before the next check
    starts only after the previous one returned. Polling stops at
    ``max_poll_attempts`` checks or ``timeout`` seconds (None or 0 disables
    either bound), or when the job's cancel event is set.
    """

    def __init__(
        self,
        client: GeminiClient,
        model: str = "veo-3.1-fast-generate-preview",
        resolution: str = "720p",
        poll_interval: float = 5.0,
        max_poll_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client
        self.model = model
        self.resolution = resolution
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.timeout = timeout

    async def generate(
        self,
        image: Union[bytes, str],
        prompt: str = "",
        aspect_ratio: str = "16:9",
        mime_type: str = "image/png",
        cancel: Optional[asyncio.Event] = None,
    ) -> bytes:
        """
        Generate a video from a reference image.

        Returns:
            Video bytes

        Raises:
            VideoGenerationError: classified failure
        """
        image_b64, mime_type = encode_image(image, mime_type)
        job = VideoJob(
            image_b64=image_b64,
            prompt=prompt,
            aspect_ratio=aspect_ratio,
            mime_type=mime_type,
            cancel=cancel,
        )
        return await self.run(job)

    async def run(self, job: VideoJob) -> bytes:
        """Run a prepared job to completion, recording progress on it."""
        try:
            return await self._run(job)
        except VideoGenerationError as e:
            job.state = JobState.FAILED
            job.error = e
            logger.error(f"Video job failed ({e.kind.value}): {e.message}")
            raise

    async def _run(self, job: VideoJob) -> bytes:
        if job.aspect_ratio not in ASPECT_RATIOS:
            raise VideoGenerationError(
                VideoErrorKind.GENERIC, f"Unsupported aspect ratio: {job.aspect_ratio}"
            )

        prompt = job.prompt.strip() or DEFAULT_VIDEO_PROMPT

        job.state = JobState.SUBMITTED
        try:
            job.operation = await self.client.start_video_generation(
                model=self.model,
                prompt=prompt,
                image_b64=job.image_b64,
                mime_type=job.mime_type,
                aspect_ratio=job.aspect_ratio,
                resolution=self.resolution,
                number_of_videos=1,
            )
        except GeminiAPIError as e:
            raise _classify(e) from e
        logger.info(f"Submitted video job {job.operation.name}")

        job.state = JobState.POLLING
        await self._poll(job)

        operation = job.operation
        if operation.error:
            raise _classify(operation.error)
        if not operation.video_uri:
            raise VideoGenerationError(VideoErrorKind.GENERIC, "Video generation failed.")

        try:
            data = await self.client.download(operation.video_uri)
        except GeminiAPIError as e:
            raise _classify(e) from e

        job.state = JobState.DONE
        logger.info(f"Video job {operation.name} done ({len(data)} bytes)")
        return data

    async def _poll(self, job: VideoJob):
        loop = asyncio.get_running_loop()
        started = loop.time()

        while not job.operation.done:
            if self.max_poll_attempts and job.polls >= self.max_poll_attempts:
                raise VideoGenerationError(
                    VideoErrorKind.TIMED_OUT,
                    f"Job not done after {job.polls} status checks",
                )

            await self._wait(job.cancel)

            if self.timeout and loop.time() - started > self.timeout:
                raise VideoGenerationError(
                    VideoErrorKind.TIMED_OUT,
                    f"Job not done after {self.timeout:.0f}s",
                )

            try:
                job.operation = await self.client.get_operation(job.operation)
            except GeminiAPIError as e:
                raise _classify(e) from e

            job.polls += 1
            logger.debug(f"Status check {job.polls}: done={job.operation.done}")

    async def _wait(self, cancel: Optional[asyncio.Event]):
        """Sleep one poll interval; a set cancel event ends the job."""
        if cancel is None:
            await asyncio.sleep(self.poll_interval)
            return

        if not cancel.is_set():
            try:
                await asyncio.wait_for(cancel.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                return

        raise VideoGenerationError(VideoErrorKind.CANCELLED, "Job cancelled")


@dataclass
class AnimationResult:
    """Outcome of one animation request, ready for display."""
    filename: Optional[str] = None
    file_path: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[VideoErrorKind] = None


class VideoAnimator:
    """
    Runs one video job at a time and turns failures into display messages.

    Videos are written under ``output_dir`` so they can be served as static
    files.
    """

    def __init__(
        self,
        key_selector: KeySelector,
        make_client: Callable[[str], GeminiClient],
        output_dir: str = "static/videos",
        model: str = "veo-3.1-fast-generate-preview",
        resolution: str = "720p",
        poll_interval: float = 5.0,
        max_poll_attempts: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize animator.

        Args:
            key_selector: Credential source, asked before each submission
            make_client: Builds an API client for a given key
            output_dir: Directory to save generated videos
        """
        self.key_selector = key_selector
        self.make_client = make_client
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.model = model
        self.resolution = resolution
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.timeout = timeout

        self.current_job: Optional[VideoJob] = None
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def cancel(self) -> bool:
        """Cancel the running job. Returns False if nothing is running."""
        job = self.current_job
        if not self._busy or job is None or job.cancel is None:
            return False
        job.cancel.set()
        logger.info("Video job cancellation requested")
        return True

    async def animate(
        self,
        image: Union[bytes, str],
        prompt: str = "",
        aspect_ratio: str = "16:9",
        mime_type: str = "image/png",
    ) -> AnimationResult:
        """
        Generate and save a celebration video.

        Raises:
            AnimatorBusyError: if a job is already running
        """
        if self._busy:
            raise AnimatorBusyError("A video is already being generated")
        self._busy = True

        try:
            if not self.key_selector.has_selected_key():
                self.key_selector.open_select_key()

            image_b64, mime_type = encode_image(image, mime_type)
            job = VideoJob(
                image_b64=image_b64,
                prompt=prompt,
                aspect_ratio=aspect_ratio,
                mime_type=mime_type,
                cancel=asyncio.Event(),
            )
            self.current_job = job

            client = self.make_client(self.key_selector.api_key)
            await client.connect()
            try:
                video_client = VideoClient(
                    client,
                    model=self.model,
                    resolution=self.resolution,
                    poll_interval=self.poll_interval,
                    max_poll_attempts=self.max_poll_attempts,
                    timeout=self.timeout,
                )
                data = await video_client.run(job)
            finally:
                await client.disconnect()

            return self._save(data)

        except VideoGenerationError as e:
            return self._failure(e)

        except Exception as e:
            logger.exception(f"Unexpected error during video generation: {e}")
            error = VideoGenerationError(VideoErrorKind.GENERIC, str(e))
            if self.current_job is not None:
                self.current_job.state = JobState.FAILED
                self.current_job.error = error
            return self._failure(error)

        finally:
            self._busy = False

    def _save(self, data: bytes) -> AnimationResult:
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        filename = f"celebration-{timestamp}-{uuid.uuid4().hex[:8]}.mp4"
        file_path = self.output_dir / filename
        file_path.write_bytes(data)
        logger.info(f"Saved video to {file_path}")
        return AnimationResult(filename=filename, file_path=str(file_path))

    def _failure(self, error: VideoGenerationError) -> AnimationResult:
        if error.kind == VideoErrorKind.CREDENTIAL:
            self.key_selector.open_select_key()
            message = CREDENTIAL_MESSAGE
        elif error.kind == VideoErrorKind.TIMED_OUT:
            message = TIMEOUT_MESSAGE
        elif error.kind == VideoErrorKind.CANCELLED:
            message = CANCELLED_MESSAGE
        else:
            message = GENERIC_MESSAGE
        return AnimationResult(error=message, error_kind=error.kind)
