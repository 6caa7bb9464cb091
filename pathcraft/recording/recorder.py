import re
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from tenacity import retry, stop_after_attempt, wait_fixed

from pathcraft.core.constants import (
    DEFAULT_BROWSER,
    DEFAULT_VIEWPORT,
    ELEMENT_STEP_TYPES,
    SALIENT_SELECTORS,
    SCREENSHOT_ATTEMPTS,
    USER_AGENT_SCRIPT,
)
from pathcraft.core.errors import CapturedStepError, StateError
from pathcraft.core.logging import log
from pathcraft.core.models import (
    Assertion,
    AssertionOperator,
    AssertionType,
    ConsoleMessage,
    Element,
    InteractionResult,
    InteractionStep,
    NetworkActivity,
    PathMetadata,
    RecordingSession,
    StepType,
    UserPath,
    Viewport,
)
from pathcraft.core.state import SessionStatus, check_transition
from pathcraft.recording.analysis import analyze_path
from pathcraft.recording.page import PageCapability


class RecordingOptions(BaseModel):
    """What the recorder captures besides the steps themselves."""
    model_config = ConfigDict(frozen=True)

    capture_screenshots: bool = True
    capture_network: bool = True
    capture_console: bool = True
    generate_assertions: bool = True
    screenshot_type: Literal["png", "jpeg"] = "png"
    screenshot_quality: int = Field(default=80, ge=0, le=100)


def describe_action(element: Element, result: InteractionResult) -> str:
    """Human readable description of an interaction, used for comments."""
    target = element.text or element.selector

    if element.type in ("text-input", "textarea"):
        return f'Type "{result.value}" into {target}'
    if element.type == "button":
        return f'Click button "{target}"'
    if element.type == "link":
        return f'Click link "{target}"'
    if element.type == "checkbox":
        return f"Check {target}" if result.value else f"Uncheck {target}"
    if element.type == "select":
        return f'Select "{result.value}" from {target}'
    return f"Interact with {target}"


class UserPathRecorder:
    """
    Captures the ordered trace of one page's interactions.

    Lifecycle: idle -> recording -> (paused <-> recording) -> completed -> idle.
    One instance records one session at a time and must not be shared between
    concurrent tasks.
    """

    def __init__(self, options: Optional[RecordingOptions] = None, clock: Callable[[], float] = time.time):
        self.options = options or RecordingOptions()
        self.clock = clock
        self.session: Optional[RecordingSession] = None
        self.page: Optional[PageCapability] = None
        self.screenshots: Dict[str, bytes] = {}
        self._network: List[NetworkActivity] = []
        self._listeners: List[Tuple[str, Callable[..., Any]]] = []
        self._start_ms = 0.0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session is not None:
            self.abort()

    # Session lifecycle

    async def start_recording(
        self,
        page: PageCapability,
        metadata: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
    ) -> RecordingSession:
        if self.session is not None:
            raise StateError("Recording already in progress")
        check_transition(None, SessionStatus.RECORDING)

        self.page = page
        self.screenshots = {}
        self._network = []
        self._start_ms = self._now_ms()

        viewport = page.viewport_size or DEFAULT_VIEWPORT
        try:
            user_agent = await page.evaluate(USER_AGENT_SCRIPT)
        except Exception as e:
            log(f"Could not read user agent: {e}", level="warning")
            user_agent = ""

        seeded = {
            "browser": DEFAULT_BROWSER,
            "viewport": Viewport(**viewport),
            "user_agent": user_agent or "",
        }
        seeded.update(metadata or {})

        started_at = datetime.now()
        self.session = RecordingSession(
            start_time=started_at,
            current_path=UserPath(
                name=name or f"Recording {started_at.isoformat()}",
                start_url=page.url,
                metadata=PathMetadata(**seeded),
                created_at=started_at,
            ),
        )
        self._install_listeners(page)

        log("Started recording user path", session_id=self.session.id, url=page.url)
        return self.session

    async def stop_recording(self) -> UserPath:
        session = self._require_session()
        check_transition(session.status, SessionStatus.COMPLETED)

        try:
            self._remove_listeners()
            session.status = SessionStatus.COMPLETED
            session.end_time = datetime.now()

            path = session.current_path
            path.end_url = self.page.url
            path.duration = self._now_ms() - self._start_ms

            if self.options.generate_assertions:
                await self._final_assertions(path)

            analysis = analyze_path(path)
            log(
                "Recording completed",
                session_id=session.id,
                duration_ms=path.duration,
                steps=len(path.steps),
                complexity=analysis.complexity,
                interactions=analysis.interaction_count,
                assertions=analysis.assertions,
            )
            return path
        finally:
            check_transition(SessionStatus.COMPLETED, None)
            self.session = None
            self.page = None

    def pause_recording(self) -> None:
        session = self._require_session()
        check_transition(session.status, SessionStatus.PAUSED)
        session.status = SessionStatus.PAUSED
        log("Recording paused", level="debug", session_id=session.id)

    def resume_recording(self) -> None:
        session = self._require_session()
        check_transition(session.status, SessionStatus.RECORDING)
        session.status = SessionStatus.RECORDING
        log("Recording resumed", level="debug", session_id=session.id)

    def abort(self) -> None:
        """Drop the active session without finalizing it, releasing page hooks."""
        if self.session is None:
            return
        self._remove_listeners()
        log("Recording aborted", level="warning", session_id=self.session.id)
        self.session = None
        self.page = None

    def get_session(self) -> Optional[RecordingSession]:
        return self.session

    def get_current_path(self) -> Optional[UserPath]:
        return self.session.current_path if self.session else None

    # Capture

    async def record_navigation(self, url: str) -> Optional[InteractionStep]:
        if self._ignored("navigation"):
            return None

        started = self._now_ms()
        step = InteractionStep(
            type=StepType.NAVIGATION,
            action=f"Navigate to {url}",
            value=url,
            timestamp=started,
        )
        network_mark = len(self._network)

        try:
            await self.page.goto(url)
        except Exception as e:
            step.error = CapturedStepError.describe(e)
            log(f"Navigation to {url} failed: {step.error}", level="warning", url=url)

        step.duration = self._now_ms() - started
        step.network_activity = list(self._network[network_mark:])

        if step.error is None:
            if self.options.capture_screenshots:
                step.screenshot = await self._capture_screenshot("navigation")
            if self.options.generate_assertions:
                await self._navigation_assertions(url)

        self._append(step)
        return step

    async def record_interaction(self, element: Element, result: InteractionResult) -> Optional[InteractionStep]:
        if self._ignored("interaction"):
            return None

        step_type = StepType(ELEMENT_STEP_TYPES.get(element.type, StepType.CLICK.value))
        step = InteractionStep(
            type=step_type,
            element=element,
            action=describe_action(element, result),
            value=result.value,
            timestamp=self._now_ms(),
            duration=result.timing,
            network_activity=list(result.network_activity),
            state_changes=list(result.state_changes),
            error=result.error,
        )

        if result.screenshot:
            step.screenshot = result.screenshot
        elif self.options.capture_screenshots and not result.error:
            step.screenshot = await self._capture_screenshot(step_type.value)

        if self.options.generate_assertions and result.success:
            self._interaction_assertions(element, result)

        self._append(step)
        log(
            "Recorded interaction",
            level="debug",
            step_type=step_type.value,
            selector=element.selector,
            success=result.success,
        )
        return step

    async def record_wait(self, duration: float, reason: Optional[str] = None) -> Optional[InteractionStep]:
        if self._ignored("wait"):
            return None

        step = InteractionStep(
            type=StepType.WAIT,
            action=reason or f"Wait for {duration}ms",
            value=duration,
            timestamp=self._now_ms(),
            duration=duration,
        )
        try:
            await self.page.wait_for_timeout(duration)
        except Exception as e:
            step.error = CapturedStepError.describe(e)
            log(f"Wait failed: {step.error}", level="warning")

        self._append(step)
        return step

    async def record_screenshot(self, name: str) -> Optional[InteractionStep]:
        if self._ignored("screenshot"):
            return None

        timestamp = self._now_ms()
        reference = await self._capture_screenshot(name)
        step = InteractionStep(
            type=StepType.SCREENSHOT,
            action=f"Capture screenshot: {name}",
            timestamp=timestamp,
            screenshot=reference,
            error=None if reference else f"Screenshot '{name}' could not be captured",
        )
        self._append(step)
        return step

    async def record_assertion(self, assertion: Assertion) -> Optional[InteractionStep]:
        if self._ignored("assertion"):
            return None

        self.session.current_path.assertions.append(assertion)
        step = InteractionStep(
            type=StepType.ASSERTION,
            action=f"Assert {assertion.type.value}",
            value=assertion.expected,
            timestamp=self._now_ms(),
        )
        self._append(step)
        return step

    # Internals

    def _now_ms(self) -> float:
        return self.clock() * 1000

    def _require_session(self) -> RecordingSession:
        if self.session is None:
            raise StateError("No recording in progress")
        return self.session

    def _ignored(self, what: str) -> bool:
        session = self._require_session()
        if session.status == SessionStatus.PAUSED:
            log(f"Recording paused, ignoring {what}", level="debug", session_id=session.id)
            return True
        return False

    def _capturing(self) -> bool:
        return self.session is not None and self.session.status == SessionStatus.RECORDING

    def _append(self, step: InteractionStep) -> None:
        steps = self.session.current_path.steps
        # Keep the path time-ordered even if the clock steps backwards
        if steps and step.timestamp < steps[-1].timestamp:
            step.timestamp = steps[-1].timestamp
        steps.append(step)

    def _install_listeners(self, page: PageCapability) -> None:
        if self.options.capture_network:
            self._subscribe(page, "request", self._on_request)
            self._subscribe(page, "response", self._on_response)
        if self.options.capture_console:
            self._subscribe(page, "console", self._on_console)

    def _subscribe(self, page: PageCapability, event: str, handler: Callable[..., Any]) -> None:
        page.on(event, handler)
        self._listeners.append((event, handler))

    def _remove_listeners(self) -> None:
        for event, handler in self._listeners:
            self.page.remove_listener(event, handler)
        self._listeners = []

    def _on_request(self, request: Any) -> None:
        if not self._capturing():
            return
        self._network.append(NetworkActivity(
            url=request.url,
            method=request.method,
            timing=self._now_ms() - self._start_ms,
        ))

    def _on_response(self, response: Any) -> None:
        if not self._capturing():
            return
        for activity in self._network:
            if activity.url == response.url and activity.status is None:
                activity.status = response.status
                break

    def _on_console(self, message: Any) -> None:
        if not self._capturing():
            return
        self.session.console_messages.append(ConsoleMessage(
            type=message.type,
            text=message.text,
            timing=self._now_ms() - self._start_ms,
        ))

    async def _capture_screenshot(self, name: str) -> Optional[str]:
        stem = re.sub(r"[^A-Za-z0-9_-]+", "-", name).strip("-") or "screenshot"
        reference = f"{stem}_{int(self._now_ms())}.{self.options.screenshot_type}"
        if reference in self.screenshots:
            reference = f"{stem}_{int(self._now_ms())}_{len(self.screenshots)}.{self.options.screenshot_type}"

        try:
            self.screenshots[reference] = await self._grab_screenshot()
        except Exception as e:
            log(f"Failed to capture screenshot '{name}': {e}", level="error", screenshot=name)
            return None
        return reference

    @retry(stop=stop_after_attempt(SCREENSHOT_ATTEMPTS), wait=wait_fixed(0.1), reraise=True)
    async def _grab_screenshot(self) -> bytes:
        kwargs: Dict[str, Any] = {"full_page": False, "type": self.options.screenshot_type}
        if self.options.screenshot_type == "jpeg":
            kwargs["quality"] = self.options.screenshot_quality
        return await self.page.screenshot(**kwargs)

    async def _navigation_assertions(self, expected_url: str) -> None:
        assertions = self.session.current_path.assertions
        assertions.append(Assertion(
            type=AssertionType.URL,
            target="page",
            expected=expected_url,
            operator=AssertionOperator.CONTAINS,
        ))

        try:
            title = await self.page.title()
        except Exception as e:
            log(f"Could not read page title: {e}", level="warning")
            return
        if title:
            assertions.append(Assertion(
                type=AssertionType.TITLE,
                target="page",
                expected=title,
                operator=AssertionOperator.EQUALS,
            ))

    def _interaction_assertions(self, element: Element, result: InteractionResult) -> None:
        assertions = self.session.current_path.assertions

        if element.type in ("text-input", "textarea", "select") and result.value:
            assertions.append(Assertion(
                type=AssertionType.VALUE,
                target=element.selector,
                expected=result.value,
                operator=AssertionOperator.EQUALS,
            ))

        if element.type == "checkbox" and result.value is not None:
            assertions.append(Assertion(
                type=AssertionType.ATTRIBUTE,
                target=element.selector,
                expected="checked" if result.value else None,
                operator=AssertionOperator.EXISTS if result.value else AssertionOperator.NOT_EXISTS,
            ))

        url_change = next((change for change in result.state_changes if change.type == "url"), None)
        if url_change is not None:
            assertions.append(Assertion(
                type=AssertionType.URL,
                target="page",
                expected=url_change.after,
                operator=AssertionOperator.EQUALS,
            ))

    async def _final_assertions(self, path: UserPath) -> None:
        for selector in SALIENT_SELECTORS:
            try:
                elements = await self.page.query_selector_all(selector)
            except Exception as e:
                log(f"Skipping visibility check for {selector}: {e}", level="debug")
                continue
            if elements:
                path.assertions.append(Assertion(
                    type=AssertionType.VISIBLE,
                    target=selector,
                    expected=True,
                    operator=AssertionOperator.EQUALS,
                ))
