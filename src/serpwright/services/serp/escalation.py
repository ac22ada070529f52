"""
SERP Engine - Escalation State Machine

Every request starts headless. If Google answers with a verification
challenge, the headless browser (or, for a caller-owned browser, the request's
context) is torn down, a visible browser is launched with the same session
state and the same navigation is replayed so a human can complete the check.

State Flow:
    HEADLESS ──results──────────────────────────────► RESOLVED
       │  └──timeout / network failure──────────────► FAILED
       └──challenge──► CHALLENGE_DETECTED ──► HEADED ──results──► RESOLVED
                                                 └──ceiling / failure──► FAILED

Rules:
- Escalation happens at most once per request; HEADED never goes back.
- Two browser instances never run at the same time for one request.
- The headed wait uses its own ceiling, not the request's timeout_ms.
- Session state (and fingerprint) is persisted on RESOLVED only.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from .browser import BrowserController, BrowserHandle, BrowserMode, BrowserSession
from .exceptions import ChallengeUnresolvedError, EscalationError, SerpException
from .executor import NavigationStatus, QueryExecutor
from .session_store import SavedFingerprint, SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EscalationState(str, Enum):
    HEADLESS = "headless"
    CHALLENGE_DETECTED = "challenge_detected"
    HEADED = "headed"
    RESOLVED = "resolved"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[EscalationState, frozenset[EscalationState]] = {
    EscalationState.HEADLESS: frozenset(
        {EscalationState.CHALLENGE_DETECTED, EscalationState.RESOLVED, EscalationState.FAILED}
    ),
    EscalationState.CHALLENGE_DETECTED: frozenset({EscalationState.HEADED, EscalationState.FAILED}),
    EscalationState.HEADED: frozenset({EscalationState.RESOLVED, EscalationState.FAILED}),
    EscalationState.RESOLVED: frozenset(),
    EscalationState.FAILED: frozenset(),
}


class EscalationMachine:
    """Tracks one request's escalation state and rejects illegal moves."""

    def __init__(self) -> None:
        self.state = EscalationState.HEADLESS
        self.history: list[EscalationState] = [EscalationState.HEADLESS]

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.state]

    @property
    def escalated(self) -> bool:
        return EscalationState.HEADED in self.history

    def can_transition(self, to: EscalationState) -> bool:
        return to in ALLOWED_TRANSITIONS[self.state]

    def transition(self, to: EscalationState) -> None:
        """
        Move to ``to``.

        Raises:
            EscalationError: Transition not in ALLOWED_TRANSITIONS
        """
        if not self.can_transition(to):
            raise EscalationError(
                "Illegal escalation transition",
                from_state=self.state.value,
                to_state=to.value,
            )
        logger.debug(f"Escalation: {self.state.value} -> {to.value}")
        self.state = to
        self.history.append(to)

    def fail(self) -> None:
        """Move to FAILED unless already terminal."""
        if not self.is_terminal:
            self.transition(EscalationState.FAILED)


@dataclass
class EscalationJob(Generic[T]):
    """
    Everything the runner needs for one request.

    ``work`` runs on the resolved session (extraction or HTML capture) while
    the handle lock is still held.
    """

    url: str
    timeout_ms: int
    work: Callable[[BrowserSession], Awaitable[T]]
    headed_timeout_ms: int | None = None
    state_path: str | None = None
    persist_session: bool = True
    fingerprint: SavedFingerprint | None = None
    shared_handle: BrowserHandle | None = None
    legacy_headless: bool = True
    storage_state: dict[str, Any] | None = field(default=None, repr=False)


class EscalationRunner:
    """
    Drives a job through the escalation state machine.

    Usage:
        runner = EscalationRunner(controller, executor, store)
        results = await runner.run(job)
    """

    def __init__(
        self,
        controller: BrowserController,
        executor: QueryExecutor,
        store: SessionStore,
    ) -> None:
        self.controller = controller
        self.executor = executor
        self.store = store

    async def run(self, job: EscalationJob[T], machine: EscalationMachine | None = None) -> T:
        """
        Run ``job`` to RESOLVED and return what ``job.work`` produced.

        Raises:
            NavigationError / NavigationTimeoutError: Attempt failed outright
            ChallengeUnresolvedError: Headed ceiling hit while still challenged
            BrowserLaunchError: A browser could not be started
            Whatever ``job.work`` raises (e.g. ExtractionError)
        """
        machine = machine or EscalationMachine()

        if not job.legacy_headless:
            logger.info("headless=False is deprecated and ignored; searches start headless and escalate on challenge")

        if job.storage_state is None and job.state_path:
            if self.store.exists(job.state_path):
                job.storage_state = await self.store.load(job.state_path)
            else:
                logger.info(f"No browser state at {job.state_path}, starting a fresh session")

        resolved, value = await self._attempt(machine, job, BrowserMode.HEADLESS)
        if resolved:
            return value

        # Headless handle/context is released by now
        machine.transition(EscalationState.HEADED)
        logger.warning("Google requested verification; opening a browser window to complete it")

        _, value = await self._attempt(machine, job, BrowserMode.HEADED)
        return value

    async def _attempt(
        self,
        machine: EscalationMachine,
        job: EscalationJob[T],
        mode: BrowserMode,
    ) -> tuple[bool, T | None]:
        existing = job.shared_handle if mode is BrowserMode.HEADLESS else None
        try:
            handle = await self.controller.acquire(mode, existing=existing)
        except SerpException:
            machine.fail()
            raise

        try:
            async with handle.lock:
                session = await self._open(machine, handle, job)
                try:
                    try:
                        outcome = await self.executor.navigate(
                            session,
                            job.url,
                            timeout_ms=job.timeout_ms,
                            headed_timeout_ms=job.headed_timeout_ms,
                        )
                    except SerpException:
                        machine.fail()
                        raise

                    if outcome.status is NavigationStatus.CHALLENGE:
                        if mode is BrowserMode.HEADED:
                            machine.fail()
                            raise ChallengeUnresolvedError(
                                "Verification still required after escalation",
                                url=job.url,
                                challenge_type=outcome.challenge_type,
                                timeout_ms=job.headed_timeout_ms,
                            )
                        machine.transition(EscalationState.CHALLENGE_DETECTED)
                        return False, None

                    machine.transition(EscalationState.RESOLVED)
                    await self._persist(session, job)
                    return True, await job.work(session)
                finally:
                    await session.close()
        finally:
            await self.controller.release(handle)

    async def _open(self, machine: EscalationMachine, handle: BrowserHandle, job: EscalationJob[T]) -> BrowserSession:
        """
        Open a context for ``job``.

        If the browser rejects the saved state, the state is dropped and one
        fresh context is tried instead.
        """
        fingerprint = job.fingerprint.fingerprint if job.fingerprint else None
        try:
            return await self.controller.open_session(handle, job.storage_state, fingerprint)
        except SerpException as e:
            if job.storage_state is None:
                machine.fail()
                raise
            logger.warning(f"Browser rejected saved state, starting a fresh session: {e}")
            job.storage_state = None

        try:
            return await self.controller.open_session(handle, None, fingerprint)
        except SerpException:
            machine.fail()
            raise

    async def _persist(self, session: BrowserSession, job: EscalationJob[T]) -> None:
        """Save session state and fingerprint after a resolved navigation (best effort)."""
        if not job.persist_session or not job.state_path:
            return

        try:
            state = await session.storage_state()
        except Exception as e:
            logger.warning(f"Could not capture browser state: {e}")
            return

        await self.store.save(job.state_path, state)
        if job.fingerprint is not None:
            await self.store.save_fingerprint(job.state_path, job.fingerprint)


__all__ = [
    "ALLOWED_TRANSITIONS",
    "EscalationJob",
    "EscalationMachine",
    "EscalationRunner",
    "EscalationState",
]
