"""
Future Self Generator - Timeline Orchestrator

Owns the timeline of future-self images for one user session:
- One slot per fixed year offset (+5 ... +70 years)
- Health snapshots computed per slot and memoized
- Deceased outcome when the slot's age exceeds projected life expectancy,
  decided locally without calling the image service
- At most one in-flight generation per slot
- Bounded retry with linear backoff, then Failed until the user retries
- Custom requests ("playing tennis at age 60") routed to the nearest slot

Slot states are immutable values; callers read them with slot()/slots() and
never mutate them. Every public operation reports its outcome as a slot state
instead of raising.

Usage:
    generator = FutureSelfGenerator(service, base_image, basic_info, answers)
    await asyncio.gather(generator.request_slot(0), generator.request_slot(1))
    state = generator.slot(0)
    if isinstance(state, Ready):
        write_artifact(state.image, generator.intervals[0], output_dir)
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from health_projection import HealthSnapshot, ProjectionEngine, get_projection_engine
from image_generation_service import GenerationResponse, artifact_filename
from future_self_prompts import BaseImage, GenerationRequest, PromptBuilder, PromptMode
from lifestyle_factors import LifestyleFactorExtractor, LifestyleFactors
from retry_policy import MalformedGenerationResponse, RetryPolicy, TerminalGenerationFailure
from structured_logging import LogContext, generate_session_id, log_slot_transition
from survey_questions import BasicInfo, SurveyAnswer

logger = logging.getLogger(__name__)

# Years from today for each timeline slot; defines slot indices 0..13
AGE_INTERVALS: Tuple[int, ...] = (5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55, 60, 65, 70)


class ImageService(Protocol):
    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        ...


# =============================================================================
# SLOT STATES
# =============================================================================

class SlotStatus(Enum):
    EMPTY = "empty"
    GENERATING = "generating"
    READY = "ready"
    DECEASED = "deceased"
    FAILED = "failed"


@dataclass(frozen=True)
class Empty:
    status: ClassVar[SlotStatus] = SlotStatus.EMPTY


@dataclass(frozen=True)
class Generating:
    snapshot: HealthSnapshot
    status: ClassVar[SlotStatus] = SlotStatus.GENERATING


@dataclass(frozen=True)
class Ready:
    image: bytes
    snapshot: HealthSnapshot
    mime_type: Optional[str] = None
    status: ClassVar[SlotStatus] = SlotStatus.READY

    def __repr__(self) -> str:
        return f"Ready(image=<{len(self.image)} bytes>, years_offset={self.snapshot.years_offset})"


@dataclass(frozen=True)
class Deceased:
    snapshot: HealthSnapshot
    status: ClassVar[SlotStatus] = SlotStatus.DECEASED


@dataclass(frozen=True)
class Failed:
    snapshot: HealthSnapshot
    attempts: int
    error: Optional[str] = None
    status: ClassVar[SlotStatus] = SlotStatus.FAILED


SlotState = Union[Empty, Generating, Ready, Deceased, Failed]

EMPTY = Empty()


@dataclass(frozen=True)
class SlotRequest:
    """The logical request last issued for a slot, kept so retry can repeat it."""
    mode: PromptMode
    years_offset: int
    target_age: int
    action_text: Optional[str] = None


def nearest_slot_index(years_ahead: float, intervals: Sequence[int] = AGE_INTERVALS) -> int:
    """Index of the interval closest to years_ahead; ties go to the earlier slot."""
    # min() keeps the first of equal keys
    return min(range(len(intervals)), key=lambda i: abs(intervals[i] - years_ahead))


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class FutureSelfGenerator:
    """Generates and tracks future-self images for one session."""

    def __init__(
        self,
        service: ImageService,
        base_image: BaseImage,
        basic_info: BasicInfo,
        answers: Mapping[str, SurveyAnswer],
        retry_policy: Optional[RetryPolicy] = None,
        engine: Optional[ProjectionEngine] = None,
        extractor: Optional[LifestyleFactorExtractor] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        intervals: Sequence[int] = AGE_INTERVALS,
        session_id: Optional[str] = None
    ):
        self.service = service
        self.base_image = base_image
        self.basic_info = basic_info
        self.answers = dict(answers)
        self.retry_policy = retry_policy or RetryPolicy()
        self.engine = engine or get_projection_engine()
        self.extractor = extractor or LifestyleFactorExtractor()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.intervals: Tuple[int, ...] = tuple(intervals)
        self.session_id = session_id or generate_session_id()

        self._slots: List[SlotState] = [EMPTY] * len(self.intervals)
        self._requests: Dict[int, SlotRequest] = {}
        self._snapshots: Dict[int, HealthSnapshot] = {}
        self._factors: Optional[LifestyleFactors] = None
        self._baseline: Optional[HealthSnapshot] = None

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def current_age(self) -> int:
        return self.basic_info.age

    @property
    def life_expectancy(self) -> int:
        return self.baseline_snapshot().life_expectancy

    @property
    def pending_count(self) -> int:
        return sum(1 for state in self._slots if isinstance(state, Generating))

    def slot(self, index: int) -> SlotState:
        self._check_index(index)
        return self._slots[index]

    def slots(self) -> Tuple[SlotState, ...]:
        return tuple(self._slots)

    def baseline_snapshot(self) -> HealthSnapshot:
        """Present-day projection (offset 0)."""
        if self._baseline is None:
            self._baseline = self.engine.project(self.basic_info, self.answers, 0)
        return self._baseline

    def snapshot_for(self, index: int) -> HealthSnapshot:
        """Health snapshot at the slot's interval offset, computed once per slot."""
        self._check_index(index)
        if index not in self._snapshots:
            self._snapshots[index] = self.engine.project(
                self.basic_info, self.answers, self.intervals[index]
            )
        return self._snapshots[index]

    def lifestyle_factors(self) -> LifestyleFactors:
        if self._factors is None:
            self._factors = self.extractor.classify(self.answers)
        return self._factors

    def nearest_slot_index(self, target_age: int) -> int:
        return nearest_slot_index(target_age - self.current_age, self.intervals)

    def artifact_filename(self, index: int) -> str:
        self._check_index(index)
        return artifact_filename(self.intervals[index])

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    async def request_slot(self, index: int) -> SlotState:
        """
        Generate the image for an interval slot.

        Does nothing unless the slot is Empty (use retry() for Failed slots and
        reset() to redo finished ones).
        """
        self._check_index(index)
        if not isinstance(self._slots[index], Empty):
            logger.debug(f"Ignoring request for slot {index}: {self._slots[index].status.value}")
            return self._slots[index]

        years = self.intervals[index]
        request = SlotRequest(
            mode=PromptMode.INTERVAL,
            years_offset=years,
            target_age=self.current_age + years,
        )
        return await self._start(index, request)

    async def request_custom(self, target_age: int, action_text: str) -> SlotState:
        """
        Generate the subject at target_age doing action_text.

        The result lands in the slot nearest to target_age. A custom request
        replaces whatever the slot held before, unless that slot is still
        generating, in which case it is ignored.
        """
        index = self.nearest_slot_index(target_age)
        if isinstance(self._slots[index], Generating):
            logger.info(f"Ignoring custom request for slot {index}: generation in progress")
            return self._slots[index]

        request = SlotRequest(
            mode=PromptMode.CUSTOM,
            years_offset=target_age - self.current_age,
            target_age=target_age,
            action_text=action_text,
        )
        return await self._start(index, request)

    async def retry(self, index: int) -> SlotState:
        """Repeat the slot's last request. Only valid from Failed."""
        self._check_index(index)
        if not isinstance(self._slots[index], Failed):
            logger.debug(f"Ignoring retry for slot {index}: {self._slots[index].status.value}")
            return self._slots[index]
        return await self._start(index, self._requests[index])

    def reset(self, index: int) -> bool:
        """Return a finished slot to Empty. Generating slots are left alone."""
        self._check_index(index)
        state = self._slots[index]
        if isinstance(state, Generating):
            return False
        if not isinstance(state, Empty):
            self._transition(index, EMPTY)
        self._requests.pop(index, None)
        return True

    def reset_all(self) -> int:
        """Reset every slot that is not generating; returns how many were reset."""
        return sum(1 for index in range(len(self._slots)) if self.reset(index))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_index(self, index: int):
        if not 0 <= index < len(self.intervals):
            raise IndexError(f"Slot index {index} outside timeline 0..{len(self.intervals) - 1}")

    def _snapshot_for_request(self, index: int, request: SlotRequest) -> HealthSnapshot:
        if request.mode is PromptMode.INTERVAL:
            return self.snapshot_for(index)
        return self.engine.project(self.basic_info, self.answers, request.years_offset)

    def _transition(self, index: int, new_state: SlotState):
        old_state = self._slots[index]
        self._slots[index] = new_state
        log_slot_transition(
            slot_index=index,
            years_offset=self.intervals[index],
            from_status=old_state.status.value,
            to_status=new_state.status.value,
        )

    def _build_request(self, request: SlotRequest, snapshot: HealthSnapshot) -> GenerationRequest:
        factors = self.lifestyle_factors()
        if request.mode is PromptMode.CUSTOM:
            return self.prompt_builder.build_custom_prompt(
                self.base_image, self.basic_info, snapshot, factors,
                request.target_age, request.action_text,
            )
        return self.prompt_builder.build_interval_prompt(
            self.base_image, self.basic_info, snapshot, factors, request.years_offset,
        )

    async def _start(self, index: int, request: SlotRequest) -> SlotState:
        # Everything up to the Generating transition runs without awaiting, so a
        # second caller for the same slot always sees Generating.
        self._requests[index] = request
        snapshot = self._snapshot_for_request(index, request)

        if request.target_age > snapshot.life_expectancy:
            logger.info(
                f"Slot {index}: age {request.target_age} exceeds life expectancy "
                f"{snapshot.life_expectancy}, skipping generation"
            )
            self._transition(index, Deceased(snapshot))
            return self._slots[index]

        self._transition(index, Generating(snapshot))

        try:
            with LogContext(session_id=self.session_id, slot_index=index):
                outcome = await self._dispatch(request, snapshot)
        except BaseException as e:
            # Cancellation or interrupt: leave the slot retryable, then propagate
            reason = "cancelled" if isinstance(e, asyncio.CancelledError) else type(e).__name__
            logger.warning(f"Generation for slot {index} interrupted: {reason}")
            self._transition(index, Failed(snapshot, attempts=0, error=reason))
            raise

        self._transition(index, outcome)
        return outcome

    async def _dispatch(self, request: SlotRequest, snapshot: HealthSnapshot) -> SlotState:
        try:
            generation_request = self._build_request(request, snapshot)
        except Exception as e:
            logger.exception(f"Could not build prompt: {e}")
            return Failed(snapshot, attempts=0, error=str(e))

        async def attempt(attempt_number: int) -> GenerationResponse:
            response = await self.service.generate(generation_request)
            if response is None or not response.has_image:
                text = response.explanatory_text if response is not None else None
                raise MalformedGenerationResponse(text)
            return response

        try:
            response = await self.retry_policy.run(
                attempt,
                years_offset=request.years_offset,
                mode=request.mode.value,
            )
        except TerminalGenerationFailure as e:
            logger.error(f"Generation for +{request.years_offset} years failed: {e}")
            return Failed(snapshot, attempts=e.attempts, error=str(e.last_error))

        return Ready(image=response.image_bytes, snapshot=snapshot, mime_type=response.image_mime_type)
