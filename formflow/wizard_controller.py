"""
Wizard controller for the onboarding flow.

Owns the canonical value bag and the position in an ordered list of step
descriptors. Transitions that depend on an external result (submission, bulk
ingestion) are awaited behind a loading gate: while a call is in flight any
further navigation is dropped, not queued.
"""

from enum import Enum
from typing import Dict, Any, List, Optional, Callable, Awaitable, Union
import logging

from .descriptors import StepDescriptor, StepKind, parse_step
from .error_handler import ErrorHandler, ErrorType
from .step_interpreter import CustomComponent, StepInterpreter, new_local_id

logger = logging.getLogger(__name__)

SubmitCallback = Callable[[StepDescriptor, Dict[str, Any]], Awaitable[Optional[BaseException]]]
UploadHook = Callable[[Any, Optional[str]], Awaitable[Dict[str, Any]]]
ChangeCallback = Callable[[Dict[str, Any]], None]
CompleteCallback = Callable[[Dict[str, Any]], None]


class WizardEvent(str, Enum):
    """Outcome of a next/skip request."""
    IGNORED = "ignored"
    REJECTED = "rejected"
    FAILED = "failed"
    ADVANCED = "advanced"
    COMPLETED = "completed"


class NavigationResult(str, Enum):
    """Outcome of a jump request; LOCKED jumps leave the index unchanged."""
    MOVED = "moved"
    LOCKED = "locked"


class WizardController:
    """Orchestrates an ordered list of steps."""

    def __init__(
        self,
        steps: List[Union[StepDescriptor, Dict[str, Any]]],
        values: Optional[Dict[str, Any]] = None,
        on_submit: Optional[SubmitCallback] = None,
        on_upload: Optional[UploadHook] = None,
        on_change: Optional[ChangeCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        custom_components: Optional[Dict[str, CustomComponent]] = None,
        strict_working_hours: bool = False,
        registration_step_index: int = 0,
        id_factory: Callable[[], str] = new_local_id
    ):
        if not steps:
            raise ValueError("Wizard requires at least one step")

        self.steps: List[StepDescriptor] = [parse_step(step) for step in steps]
        self.values: Dict[str, Any] = dict(values or {})
        self.on_submit = on_submit
        self.on_upload = on_upload
        self.on_change = on_change
        self.on_complete = on_complete
        self.custom_components = custom_components or {}
        self.strict_working_hours = strict_working_hours
        self.registration_step_index = registration_step_index
        self.id_factory = id_factory

        self.index = 0
        self.authenticated = False
        self.loading = False
        self.completed = False
        self.step_error: Optional[str] = None
        self._interpreter: Optional[StepInterpreter] = None
        self._interpreter_index: Optional[int] = None

        logger.info(f"Wizard initialized with {len(self.steps)} steps")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def current_step(self) -> StepDescriptor:
        return self.steps[self.index]

    @property
    def is_first_step(self) -> bool:
        return self.index == 0

    @property
    def is_last_step(self) -> bool:
        return self.index == len(self.steps) - 1

    @property
    def interpreter(self) -> StepInterpreter:
        """Interpreter for the active step; rebuilt from the value bag on every step change."""
        if self._interpreter is None or self._interpreter_index != self.index:
            self._interpreter = StepInterpreter(
                self.current_step,
                dict(self.values),
                on_change=self.apply_update,
                custom_components=self.custom_components,
                id_factory=self.id_factory,
                strict_working_hours=self.strict_working_hours,
            )
            self._interpreter_index = self.index
        return self._interpreter

    def apply_update(self, update: Dict[str, Any]) -> None:
        """Merge a partial update into the value bag and forward it to the host."""
        if not update:
            return
        self.values.update(update)
        if self.on_change is not None:
            self.on_change(dict(update))

    def is_step_clickable(self, index: int) -> bool:
        if index == 0:
            return True
        return self.authenticated and index <= self.index + 1

    def step_states(self) -> List[Dict[str, Any]]:
        """Progress markers for each step, used by the header."""
        return [
            {
                'index': i,
                'id': step.id,
                'title': step.title,
                'icon': step.icon,
                'completed': self.index > i,
                'current': self.index == i,
                'clickable': self.is_step_clickable(i),
            }
            for i, step in enumerate(self.steps)
        ]

    def _move_to(self, index: int) -> None:
        if index != self.index:
            logger.info(f"Step transition: {self.steps[self.index].id} -> {self.steps[index].id}")
        self.index = index
        self.step_error = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def next(self) -> WizardEvent:
        """
        Validate the active step, run its submission and move forward.

        Returns:
            WizardEvent describing what happened
        """
        if self.loading:
            logger.debug("next() dropped while loading")
            return WizardEvent.IGNORED

        outcome = self.interpreter.request_advance()
        if not outcome.accepted:
            return WizardEvent.REJECTED

        self.apply_update(outcome.updates)
        return await self._submit_and_advance()

    async def skip(self) -> WizardEvent:
        """Leave a skippable step without validating or submitting it."""
        if self.loading:
            logger.debug("skip() dropped while loading")
            return WizardEvent.IGNORED
        if not self.current_step.skippable:
            logger.debug(f"skip() ignored: step {self.current_step.id} is not skippable")
            return WizardEvent.IGNORED

        logger.info(f"Step {self.current_step.id} skipped")
        return self._advance()

    def back(self) -> bool:
        """Go to the previous step; values entered so far are kept."""
        if self.loading or self.index == 0:
            return False
        self._move_to(self.index - 1)
        return True

    def jump_to(self, index: int) -> NavigationResult:
        """
        Jump to a step from the progress header.

        Step 0 is reachable from anywhere, authenticated or not. Other steps
        need an authenticated session and must not be further than one step
        past the current one. While a submission or upload is in flight every
        jump is dropped, step 0 included. Locked jumps are silent no-ops.
        """
        if self.loading:
            logger.debug(f"jump_to({index}) dropped while loading")
            return NavigationResult.LOCKED
        if not 0 <= index < len(self.steps):
            return NavigationResult.LOCKED
        if not self.is_step_clickable(index):
            logger.debug(f"jump_to({index}) ignored (authenticated={self.authenticated}, index={self.index})")
            return NavigationResult.LOCKED
        self._move_to(index)
        return NavigationResult.MOVED

    async def upload(self, file: Any) -> int:
        """
        Ingest a bulk catalog file through the upload hook.

        Returns:
            Number of items appended to the catalog list
        """
        if self.loading or file is None:
            return 0
        step = self.current_step
        if step.kind != StepKind.CATALOG or self.on_upload is None:
            logger.warning(f"Upload ignored for step {step.id}")
            return 0

        self.loading = True
        self.step_error = None
        try:
            result = await self.on_upload(file, step.catalog_table)
            items = (result or {}).get('items') or []
            count = self.interpreter.ingest_items(items)
            logger.info(f"Uploaded {count} item(s) into {step.catalog_table or step.id}")
            return count
        except Exception as e:
            self.step_error = ErrorHandler.handle_step_error(e, f"upload for step '{step.id}'", ErrorType.INGESTION)
            return 0
        finally:
            self.loading = False

    async def _submit_and_advance(self) -> WizardEvent:
        step = self.current_step
        self.loading = True
        self.step_error = None
        try:
            if self.on_submit is not None:
                result = await self.on_submit(step, dict(self.values))
                if isinstance(result, BaseException):
                    raise result
        except Exception as e:
            self.step_error = ErrorHandler.handle_step_error(e, f"submission of step '{step.id}'")
            return WizardEvent.FAILED
        finally:
            self.loading = False

        if self.index == self.registration_step_index and not self.authenticated:
            self.authenticated = True
            logger.info("Registration step accepted, wizard is authenticated")

        return self._advance()

    def _advance(self) -> WizardEvent:
        if self.is_last_step:
            self.completed = True
            self.step_error = None
            logger.info("Wizard completed")
            if self.on_complete is not None:
                self.on_complete(dict(self.values))
            return WizardEvent.COMPLETED

        self._move_to(self.index + 1)
        return WizardEvent.ADVANCED
