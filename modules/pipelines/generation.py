"""Batch generation orchestrator with fixed-delay retries."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from config.settings import AppConfig
from modules.services.image_client import ApiResponse, ImageApiClient, ImageRequest
from modules.services.storage_service import StorageService, format_timestamp, human_size

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """Classification of a single API call."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    API_ERROR = "api_error"
    DECODE_ERROR = "decode_error"
    EMPTY_IMAGE = "empty_image"

    @property
    def retryable(self) -> bool:
        return self is not Outcome.SUCCESS


@dataclass(slots=True)
class GenerationAttempt:
    """Record of one request/response cycle."""

    index: int
    timestamp: str
    outcome: Outcome
    response_path: Path
    image_path: Optional[Path] = None
    status_code: Optional[int] = None
    error_code: str = ""
    error_message: str = ""
    raw_body: str = ""


@dataclass(slots=True)
class RunState:
    """Counters for one batch run."""

    target: int
    successful_generations: int = 0
    total_attempts: int = 0
    retry_count: int = 0
    exhausted_slots: int = 0
    attempts: list[GenerationAttempt] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.successful_generations >= self.target


def _extract_error(document: Any) -> tuple[str, str]:
    """Return ``(code, message)`` from an ``error`` object, empty when absent."""
    if not isinstance(document, dict):
        return "", ""
    error = document.get("error")
    if error is None or error is False:
        return "", ""
    if not isinstance(error, dict):
        return "", str(error)

    def _text(value: Any) -> str:
        if value is None or value is False:
            return ""
        return str(value)

    return _text(error.get("code")), _text(error.get("message"))


def _extract_b64(document: Any) -> Optional[str]:
    """Return ``data[0].b64_json`` or None when it is missing or null."""
    if not isinstance(document, dict):
        return None
    data = document.get("data")
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    value = data[0].get("b64_json")
    if not isinstance(value, str) or not value.strip() or value == "null":
        return None
    return value


def is_rate_limited(code: str, message: str, status_code: Optional[int] = None) -> bool:
    # Message match ignores case: "Rate limit reached ..." counts as rate limited.
    return code == "429" or status_code == 429 or "rate limit" in message.lower()


class GenerationOrchestrator:
    """Drive image generation until the target count is reached."""

    def __init__(
        self,
        config: AppConfig,
        prompt: str,
        client: Optional[ImageApiClient] = None,
        storage: Optional[StorageService] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.prompt = prompt
        self.client = client or ImageApiClient(config)
        self.storage = storage or StorageService(config.output_dir)
        self._sleep = sleep
        self._clock = clock

    def build_request(self) -> ImageRequest:
        return ImageRequest(prompt=self.prompt)

    def request_image(self, index: int) -> GenerationAttempt:
        """Perform one API call for slot ``index`` and classify the result."""
        timestamp = format_timestamp(self._clock())
        logger.info("Generating image %s of %s...", index, self.config.num_images)

        response: ApiResponse = self.client.send(self.build_request())
        response_path = self.storage.save_response(index, timestamp, response.content)
        attempt = GenerationAttempt(
            index=index,
            timestamp=timestamp,
            outcome=Outcome.API_ERROR,
            response_path=response_path,
            status_code=response.status_code,
            raw_body=response.body,
        )

        try:
            document = json.loads(response.body)
        except json.JSONDecodeError:
            document = None

        code, message = _extract_error(document)
        if code or message:
            attempt.error_code, attempt.error_message = code, message
            logger.error("Error detected: %s - %s", code, message)
            if is_rate_limited(code, message, response.status_code):
                attempt.outcome = Outcome.RATE_LIMITED
                logger.warning("Rate limit reached.")
            else:
                attempt.outcome = Outcome.API_ERROR
                logger.error("Unknown error. Check %s for details.", response_path)
            return attempt

        if response.status_code == 429:
            attempt.outcome = Outcome.RATE_LIMITED
            logger.warning("Rate limit reached (HTTP 429).")
            return attempt

        b64_json = _extract_b64(document)
        if b64_json is None:
            attempt.outcome = Outcome.DECODE_ERROR
            logger.error(
                "Could not extract base64 image data. Check %s for details.", response_path
            )
            return attempt

        try:
            image_bytes = base64.b64decode(b64_json)
        except (binascii.Error, ValueError) as exc:
            attempt.outcome = Outcome.DECODE_ERROR
            logger.error("Invalid base64 image data (%s). Check %s for details.", exc, response_path)
            return attempt

        image_path = self.storage.save_image(index, timestamp, image_bytes)
        if not self.storage.is_nonempty(image_path):
            attempt.outcome = Outcome.EMPTY_IMAGE
            logger.error("Failed to save image or image is empty.")
            return attempt

        attempt.image_path = image_path
        attempt.outcome = Outcome.SUCCESS
        logger.info(
            "Success! Image %s saved to %s (Size: %s)",
            index,
            image_path,
            human_size(image_path.stat().st_size),
        )
        return attempt

    def generate_slot(self, state: RunState) -> bool:
        """Retry one image slot until success or ``max_retries`` failures."""
        max_retries = self.config.max_retries
        state.retry_count = 0

        while state.retry_count < max_retries:
            attempt = self.request_image(state.successful_generations)
            state.attempts.append(attempt)
            if not attempt.outcome.retryable:
                state.successful_generations += 1
                return True

            state.retry_count += 1
            if state.retry_count >= max_retries:
                logger.warning("Failed after %s attempts. Moving to next image.", max_retries)
                state.exhausted_slots += 1
                return False

            if attempt.outcome is Outcome.RATE_LIMITED:
                logger.info(
                    "Waiting for %s seconds before retrying...", self.config.rate_limit_cooldown
                )
                self._sleep(self.config.rate_limit_cooldown)
            logger.info("Retrying... (Attempt %s of %s)", state.retry_count, max_retries)
            self._sleep(self.config.retry_delay)

        return False

    def run(self, state: Optional[RunState] = None) -> RunState:
        """Loop over slots until ``num_images`` successes or the attempt budget runs out."""
        state = state or RunState(target=self.config.num_images)
        self.storage.ensure_output_dir()
        budget = self.config.max_total_attempts

        logger.info("Starting generation of %s images...", state.target)
        logger.info("Images will be saved to the '%s' directory", self.storage.output_dir)

        while not state.is_complete:
            if budget is not None and state.total_attempts >= budget:
                logger.warning(
                    "Stopping after %s image attempts without reaching the target.", budget
                )
                break
            state.total_attempts += 1

            if self.generate_slot(state):
                self._sleep(self.config.image_delay)

            logger.info(
                "Progress: %s/%s complete (Total attempts: %s)",
                state.successful_generations,
                state.target,
                state.total_attempts,
            )

        logger.info(
            "Generation complete! Successfully generated %s images out of %s requested.",
            state.successful_generations,
            state.target,
        )
        logger.info("Total attempts: %s", state.total_attempts)
        logger.info(
            "All images and responses are saved in the '%s' directory.", self.storage.output_dir
        )
        return state
