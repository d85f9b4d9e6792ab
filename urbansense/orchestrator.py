"""Task orchestration engine.

The :class:`Orchestrator` owns the :class:`~urbansense.types.Session` and is
the only component that mutates it. It sequences capture, analysis, speech
and listening on a single asyncio event loop. The busy check in
:meth:`Orchestrator._try_begin` runs synchronously before any suspending call
is started, so no two actions of one session can overlap.
"""

from __future__ import annotations

import logging
from typing import Callable

from .analysis import AnalysisClient, AnalysisResult
from .commands import VoiceCommandResolver
from .config import AppConfig
from .constants import DEFAULT_LANGUAGE, MSG_CAPTURE_FAILED, MSG_RECOGNITION_NO_SPEECH, MSG_UNKNOWN_ERROR
from .errors import CaptureError, LocationError, SpeechInputError, SpeechOutputError
from .locales import Locale, get_locale, is_supported
from .logging_utils import append_event, build_log_event
from .preferences import PreferenceStore, Preferences
from .prompt_builder import build_request, prompt_hash
from .providers.base import CaptureProvider, LocationProvider, SpeechInput, SpeechOutput
from .types import AnalysisRequest, Session, SessionSnapshot, SessionState, Task

LOGGER = logging.getLogger(__name__)

StateListener = Callable[[SessionSnapshot], None]


class Orchestrator:
    """Coordinates one user session across all collaborators."""

    def __init__(
        self,
        cfg: AppConfig,
        *,
        capture: CaptureProvider,
        speech_output: SpeechOutput,
        speech_input: SpeechInput,
        location: LocationProvider,
        analysis: AnalysisClient | None = None,
        resolver: VoiceCommandResolver | None = None,
        preferences: PreferenceStore | None = None,
    ) -> None:
        self.cfg = cfg
        self.capture = capture
        self.speech_output = speech_output
        self.speech_input = speech_input
        self.location = location
        self.analysis = analysis or AnalysisClient(cfg)
        self.resolver = resolver or VoiceCommandResolver()
        self.preferences = preferences
        self._listeners: list[StateListener] = []
        self.camera_error: str | None = None

        prefs = preferences.load() if preferences is not None else Preferences()
        language = next(
            (code for code in (prefs.language, cfg.language) if is_supported(code)),
            DEFAULT_LANGUAGE,
        )
        mock_mode = prefs.mock_mode if prefs.mock_mode is not None else cfg.mock_mode
        self._session = Session(
            active_locale=language,
            mock_mode=mock_mode,
            last_status=get_locale(language).status.ready,
        )

    # Public API ---------------------------------------------------------
    @property
    def locale(self) -> Locale:
        return get_locale(self._session.active_locale)

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def is_busy(self) -> bool:
        return (
            self._session.is_busy
            or self.speech_output.is_speaking
            or self.speech_input.is_listening
        )

    def snapshot(self) -> SessionSnapshot:
        session = self._session
        return SessionSnapshot(
            state=session.state,
            active_locale=session.active_locale,
            mock_mode=session.mock_mode,
            status=session.last_status,
            last_error=session.last_error,
            pending_subdialog_task=session.pending_subdialog_task,
            busy_task=session.busy_task,
            last_response=session.last_response,
            has_location=session.location is not None,
        )

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def task_label(self, task: Task) -> str:
        return self.locale.label(task)

    async def start(self) -> None:
        """Open the camera, optionally fetch a location fix, greet with "ready".

        Camera and location problems are surfaced here. A camera failure
        refuses every later task; a missing location fix only drops the
        coordinates from prompts.
        """

        status = self.locale.status
        self._transition("initializing", status.initializing)
        problems: list[str] = []

        capture_errors: list[CaptureError] = []
        if not await self.capture.start(on_error=capture_errors.append):
            self.camera_error = capture_errors[0].message if capture_errors else MSG_CAPTURE_FAILED
            problems.append(self.camera_error)

        if self.cfg.fetch_location:
            self._transition("initializing", status.acquiring_location)
            try:
                self._session.location = await self.location.request_location()
            except LocationError as exc:
                LOGGER.warning("Location unavailable (%s): %s", exc.reason, exc.message)
                problems.append(exc.message)

        for message in problems:
            await self._fail(message)
        self._finish()

    async def select_task(self, task: Task) -> bool:
        """Run ``task`` end to end.

        Returns ``False`` if the session was busy or the camera failed at
        start-up; in the latter case the camera error is spoken again.
        """

        if self.camera_error is not None:
            if self._try_begin("error"):
                try:
                    await self._fail(self.camera_error)
                finally:
                    self._finish()
            return False
        first_state: SessionState = "speaking" if task is Task.FIND_SHOP else "capturing"
        if not self._try_begin(first_state, busy_task=task):
            return False
        try:
            await self._run_task(task)
        finally:
            self._finish()
        return True

    async def handle_voice_command(self, transcript: str) -> Task | None:
        """Resolve ``transcript`` and run the matching task.

        Returns the task that ran, or ``None`` when nothing matched or the
        session was busy.
        """

        task = self.resolver.resolve(transcript, self.locale)
        if task is not None:
            return task if await self.select_task(task) else None
        if not self._try_begin("error"):
            return None
        try:
            await self._fail(self.locale.status.unrecognized_command)
        finally:
            self._finish()
        return None

    async def start_listening(self) -> bool:
        """Listen for a spoken command and dispatch it. No-op while busy."""

        if not self._try_begin("listening_for_command", status=self.locale.status.listening):
            return False
        try:
            transcript = await self._listen()
            if transcript is not None:
                await self._dispatch_command(transcript)
        finally:
            self._finish()
        return True

    def set_locale(self, code: str, *, persist: bool = True) -> bool:
        """Switch language; unknown codes leave the active locale unchanged.

        ``persist=False`` applies a one-off override without touching the
        stored preferences.
        """

        if not is_supported(code):
            LOGGER.warning("Ignoring unsupported locale %r", code)
            return False
        self._session.active_locale = code
        if not self._session.is_busy:
            self._session.last_status = self.locale.status.ready
        if persist:
            self._persist()
        self._notify()
        return True

    def set_mock_mode(self, enabled: bool, *, persist: bool = True) -> None:
        self._session.mock_mode = bool(enabled)
        if persist:
            self._persist()
        self._notify()

    def shutdown(self) -> None:
        self.speech_input.abort()
        self.speech_output.cancel()
        self.capture.close()

    # Flows ---------------------------------------------------------------
    async def _run_task(self, task: Task) -> None:
        if task is Task.FIND_SHOP:
            await self._run_shop_dialog()
        else:
            await self._run_analysis(task)

    async def _dispatch_command(self, transcript: str) -> Task | None:
        task = self.resolver.resolve(transcript, self.locale)
        if task is None:
            LOGGER.info("Unrecognized command: %r", transcript)
            await self._fail(self.locale.status.unrecognized_command)
            return None
        if self.camera_error is not None:
            await self._fail(self.camera_error)
            return None
        self._session.busy_task = task
        await self._run_task(task)
        return task

    async def _run_shop_dialog(self) -> None:
        shop_prompt = self.locale.status.shop_prompt
        self._transition("speaking", shop_prompt)
        # The answer must not be captured before the question has been heard.
        if not await self._speak(shop_prompt):
            return

        self._session.pending_subdialog_task = Task.FIND_SHOP
        self._transition("listening_for_subquery", self.locale.status.listening)
        try:
            query = await self._listen()
        finally:
            self._session.pending_subdialog_task = None
        if query is None:
            return
        await self._run_analysis(Task.FIND_SHOP, user_query=query)

    async def _run_analysis(self, task: Task, *, user_query: str | None = None) -> None:
        self._session.busy_task = task
        self._transition("capturing", self.locale.status.processing)
        frame = await self._capture()
        if not frame:
            await self._fail(MSG_CAPTURE_FAILED)
            return

        request = build_request(
            task, frame, user_query=user_query, coordinates=self._session.location
        )
        self._transition("awaiting_analysis")
        try:
            result = await self.analysis.analyze_detailed(
                request, mock_mode=self._session.mock_mode
            )
        except Exception:
            LOGGER.exception("Analysis client raised unexpectedly")
            await self._fail(MSG_UNKNOWN_ERROR)
            return
        self._record(request, result)

        self._session.last_response = result.text
        if result.error:
            await self._fail(result.text)
            return
        self._transition("speaking", result.text)
        await self._speak(result.text)

    # Provider calls --------------------------------------------------------
    async def _capture(self) -> str | None:
        try:
            return await self.capture.capture_frame()
        except CaptureError as exc:
            LOGGER.warning("Capture failed (%s): %s", exc.reason, exc.message)
        except Exception:
            LOGGER.exception("Capture provider raised unexpectedly")
        return None

    async def _speak(self, text: str) -> bool:
        try:
            await self.speech_output.speak(text, self._session.active_locale)
        except SpeechOutputError as exc:
            LOGGER.error("Speech output failed (%s): %s", exc.reason, exc.message)
            self._session.last_error = exc.message
            self._transition("error", exc.message)
            return False
        except Exception:
            LOGGER.exception("Speech output raised unexpectedly")
            self._session.last_error = MSG_UNKNOWN_ERROR
            self._transition("error", MSG_UNKNOWN_ERROR)
            return False
        return True

    async def _listen(self) -> str | None:
        try:
            transcript = await self.speech_input.listen(self._session.active_locale)
        except SpeechInputError as exc:
            if exc.is_benign:
                LOGGER.info("Listening aborted")
                return None
            LOGGER.warning("Speech input failed (%s): %s", exc.reason, exc.message)
            await self._fail(exc.message)
            return None
        except Exception:
            LOGGER.exception("Speech input raised unexpectedly")
            await self._fail(MSG_UNKNOWN_ERROR)
            return None
        if not transcript or not transcript.strip():
            await self._fail(MSG_RECOGNITION_NO_SPEECH)
            return None
        LOGGER.info("Heard: %r", transcript)
        return transcript.strip()

    async def _fail(self, message: str) -> None:
        """Show and speak ``message``; the caller's ``finally`` returns to idle."""

        self._session.last_error = message
        self._session.pending_subdialog_task = None
        self._transition("error", message)
        self._transition("speaking")
        await self._speak(message)

    # State transitions ----------------------------------------------------
    def _try_begin(
        self,
        state: SessionState,
        *,
        status: str | None = None,
        busy_task: Task | None = None,
    ) -> bool:
        if self.is_busy:
            LOGGER.debug("Ignoring request while %s", self._session.state)
            return False
        self._session.last_error = None
        self._session.busy_task = busy_task
        self._transition(state, status)
        return True

    def _transition(self, state: SessionState, status: str | None = None) -> None:
        self._session.state = state
        if status is not None:
            self._session.last_status = status
        self._notify()

    def _finish(self) -> None:
        self._session.busy_task = None
        self._session.pending_subdialog_task = None
        self._transition("idle", self.locale.status.ready)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)

    def _persist(self) -> None:
        if self.preferences is None:
            return
        prefs = Preferences(
            language=self._session.active_locale, mock_mode=self._session.mock_mode
        )
        try:
            self.preferences.save(prefs)
        except OSError as exc:
            LOGGER.warning("Could not save preferences: %s", exc)

    def _record(self, request: AnalysisRequest, result: AnalysisResult) -> None:
        LOGGER.info(
            "Analysis task=%s strategy=%s latency_ms=%s error=%s",
            request.task.value,
            result.strategy,
            result.latency_ms,
            result.error,
        )
        if not self.cfg.log_path:
            return
        event = build_log_event(
            cfg=self.cfg,
            task=request.task.value,
            strategy=result.strategy,
            locale=self._session.active_locale,
            latency_ms=result.latency_ms,
            error=result.error,
            has_location=request.coordinates is not None,
            has_user_query=request.user_query is not None,
            prompt_hash=prompt_hash(request.prompt),
            response_preview=result.text,
        )
        try:
            append_event(self.cfg.log_path, event, max_bytes=self.cfg.log_max_bytes)
        except OSError as exc:
            LOGGER.warning("Could not write event log: %s", exc)


__all__ = ["Orchestrator", "StateListener"]
