"""Qt bridge to run AI move selection in a worker thread."""

from __future__ import annotations

import logging
import threading

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from knightly.core.enums import Color
from knightly.core.position import Position
from knightly.engine.minimax import SearchCancelled
from knightly.engine.selector import DEFAULT_LEVEL, MoveSelector
from knightly.game.player import AIPlayer

_LOGGER = logging.getLogger(__name__)


class EngineWorker(QObject):
    """Thread-affine worker that computes AI moves on demand.

    Each request carries its own cancel token, so cancelling one request
    can never leak into, or be wiped by, the next.
    """

    best_move_ready = pyqtSignal(int, object, int)
    search_no_move = pyqtSignal(int)
    search_cancelled = pyqtSignal(int)
    search_error = pyqtSignal(int, str)

    def __init__(self, selector: MoveSelector | None = None) -> None:
        super().__init__()
        self._selector = selector if selector is not None else MoveSelector()
        self._active_token: threading.Event | None = None

    @pyqtSlot(object, int, int, object)
    def request_move(
        self,
        position_obj: object,
        level: int,
        request_id: int,
        cancel_token: object = None,
    ) -> None:
        """Select a move for *position_obj* at *level* and emit the result.

        The search runs on a private copy; the caller's position is never
        touched. A *cancel_token* that is already set cancels the request
        before any node is searched.
        """
        if not isinstance(position_obj, Position):
            self.search_error.emit(request_id, "Engine received invalid position")
            return

        token = (
            cancel_token
            if isinstance(cancel_token, threading.Event)
            else threading.Event()
        )
        self._active_token = token
        try:
            selection = self._selector.select(
                position_obj.copy(), level, is_cancelled=token.is_set
            )
        except SearchCancelled:
            self.search_cancelled.emit(request_id)
            return
        except Exception as exc:
            _LOGGER.exception("Search %d failed", request_id)
            self.search_error.emit(request_id, str(exc))
            return
        finally:
            self._active_token = None

        if selection is None:
            self.search_no_move.emit(request_id)
            return

        self.best_move_ready.emit(request_id, selection.move, selection.score)

    def cancel(self) -> None:
        """Cancel the search in progress (callable from any thread)."""
        token = self._active_token
        if token is not None:
            token.set()


class EngineService(QObject):
    """Owns the worker thread and hands out AI move requests.

    Every request gets a fresh id and cancel token. Only the newest
    request's answer is re-emitted; anything older is dropped, so abandoning
    a search needs no cleanup beyond issuing a new request or calling
    :meth:`cancel`.
    """

    move_ready = pyqtSignal(object, int)  # move, score (White's view)
    no_move = pyqtSignal()
    failed = pyqtSignal(str)

    _request_bus = pyqtSignal(object, int, int, object)

    def __init__(
        self,
        parent: QObject | None = None,
        selector: MoveSelector | None = None,
    ) -> None:
        super().__init__(parent)
        self._thread = QThread(self)
        self._worker = EngineWorker(selector)
        self._request_id = 0
        self._pending_request: int | None = None
        self._pending_token: threading.Event | None = None
        self._is_started = False

    # ── Lifecycle ────────────────────────────────────────────────────────

    @property
    def is_started(self) -> bool:
        return self._is_started

    @property
    def pending_request(self) -> int | None:
        return self._pending_request

    def start(self) -> None:
        """Move the worker to its thread and start it."""
        if self._is_started:
            return
        self._worker.moveToThread(self._thread)
        self._request_bus.connect(self._worker.request_move)
        self._worker.best_move_ready.connect(self._on_best_move)
        self._worker.search_no_move.connect(self._on_no_move)
        self._worker.search_cancelled.connect(self._on_cancelled)
        self._worker.search_error.connect(self._on_error)
        self._thread.start()
        self._is_started = True

    def shutdown(self, timeout_ms: int = 2000) -> None:
        """Cancel any search and stop the worker thread."""
        if not self._is_started:
            return
        self.cancel()
        self._thread.quit()
        self._thread.wait(timeout_ms)
        self._is_started = False

    # ── Requests ─────────────────────────────────────────────────────────

    def request_move(self, position: Position, level: int = DEFAULT_LEVEL) -> int:
        """Queue a search on a copy of *position*; returns the request id."""
        if not self._is_started:
            raise RuntimeError("EngineService.start() must be called first")
        self._release_pending_token()
        token = threading.Event()
        self._request_id += 1
        self._pending_request = self._request_id
        self._pending_token = token
        self._request_bus.emit(position.copy(), level, self._request_id, token)
        return self._request_id

    def cancel(self) -> None:
        """Abandon the pending request, queued or running; a late answer is dropped."""
        self._pending_request = None
        self._release_pending_token()

    def create_ai_player(
        self, color: Color, level: int = DEFAULT_LEVEL, name: str = ""
    ) -> AIPlayer:
        """An :class:`AIPlayer` whose searches run on this service's thread."""
        return AIPlayer(
            color,
            level,
            name,
            dispatch=self.request_move,
            on_cancel=self.cancel,
        )

    def _release_pending_token(self) -> None:
        if self._pending_token is not None:
            self._pending_token.set()
            self._pending_token = None

    # ── Worker callbacks ─────────────────────────────────────────────────

    def _take(self, request_id: int) -> bool:
        if request_id != self._pending_request:
            _LOGGER.debug("Dropping stale engine result %d", request_id)
            return False
        self._pending_request = None
        self._pending_token = None
        return True

    def _on_best_move(self, request_id: int, move: object, score: int) -> None:
        if self._take(request_id):
            self.move_ready.emit(move, score)

    def _on_no_move(self, request_id: int) -> None:
        if self._take(request_id):
            self.no_move.emit()

    def _on_cancelled(self, request_id: int) -> None:
        if request_id == self._pending_request:
            self._pending_request = None
            self._pending_token = None
        _LOGGER.debug("Engine search %d cancelled", request_id)

    def _on_error(self, request_id: int, message: str) -> None:
        if self._take(request_id):
            _LOGGER.warning("Engine search %d failed: %s", request_id, message)
            self.failed.emit(message)
