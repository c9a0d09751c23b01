import logging
import threading
import time
import uuid
from typing import Callable, Optional

from currency_swap.currency import parse_amount
from currency_swap.debounce import Scheduler
from currency_swap.engine import CurrencySwap
from currency_swap.errors import SessionNotFound
from currency_swap.location import QueryStringLocation
from currency_swap.models import ExchangeReceipt, SessionView, SwapConfig

logger = logging.getLogger(__name__)


class SwapSession:
    def __init__(
        self,
        session_id: str,
        config: SwapConfig,
        location_path: str = "/swap",
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.id = session_id
        self.location = QueryStringLocation(location_path)
        self.receipt: Optional[ExchangeReceipt] = None
        self.swap = CurrencySwap(
            config,
            on_swap_success=self._record_receipt,
            location=self.location,
            scheduler=scheduler,
        )

    def _record_receipt(self) -> None:
        snapshot = self.swap.snapshot()
        self.receipt = ExchangeReceipt(
            exchanged=snapshot.from_.amount,
            exchanged_currency=snapshot.from_.currency,
            received=snapshot.receive_amount,
            received_currency=snapshot.to.currency,
        )
        logger.info(
            "exchange completed: %s %s → %s %s",
            self.receipt.exchanged, self.receipt.exchanged_currency,
            self.receipt.received, self.receipt.received_currency,
        )

    def can_exchange(self) -> bool:
        snapshot = self.swap.snapshot()
        amounts = (parse_amount(snapshot.from_.amount), parse_amount(snapshot.to.amount))
        # NaN and zero both fail the comparison
        if not all(amount > 0 for amount in amounts):
            return False
        return not snapshot.error

    def view(self) -> SessionView:
        snapshot = self.swap.snapshot()
        return SessionView(
            session_id=self.id,
            location=self.location.href,
            receipt=self.receipt,
            **dict(snapshot),
        )


class SessionStore:
    """In-memory swap sessions, evicted after ``idle_ttl_seconds`` without a lookup."""

    def __init__(
        self,
        scheduler_factory: Optional[Callable[[], Scheduler]] = None,
        idle_ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sessions: dict[str, SwapSession] = {}
        self._last_seen: dict[str, float] = {}
        self._scheduler_factory = scheduler_factory
        self._idle_ttl = idle_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()

    # ── writes ────────────────────────────────────────────────────────────────

    def create(self, config: SwapConfig, location_path: str = "/swap") -> SwapSession:
        self.evict_idle()
        scheduler = self._scheduler_factory() if self._scheduler_factory else None
        session = SwapSession(uuid.uuid4().hex, config, location_path, scheduler)
        with self._lock:
            self.sessions[session.id] = session
            self._last_seen[session.id] = self._clock()
        logger.info(
            "swap session %s opened (%s → %s)",
            session.id, config.initial_from_currency, config.initial_to_currency,
        )
        return session

    def close(self, session_id: str) -> None:
        with self._lock:
            session = self.sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        session.swap.dispose()
        logger.info("swap session %s closed", session_id)

    def evict_idle(self) -> int:
        if self._idle_ttl is None:
            return 0
        cutoff = self._clock() - self._idle_ttl
        with self._lock:
            expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
            sessions = [self.sessions.pop(sid) for sid in expired]
            for sid in expired:
                del self._last_seen[sid]
        for session in sessions:
            session.swap.dispose()
            logger.info("swap session %s evicted after idling", session.id)
        return len(sessions)

    def clear(self) -> None:
        with self._lock:
            sessions, self.sessions = list(self.sessions.values()), {}
            self._last_seen.clear()
        for session in sessions:
            session.swap.dispose()

    # ── reads ─────────────────────────────────────────────────────────────────

    def get(self, session_id: str) -> SwapSession:
        self.evict_idle()
        with self._lock:
            session = self.sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            self._last_seen[session_id] = self._clock()
        return session

    def __len__(self) -> int:
        return len(self.sessions)
