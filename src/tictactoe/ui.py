"""FastAPI-powered web UI for playing tic-tac-toe in the browser."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple, TypeVar

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .config import Settings, load_settings
from .game import BOARD_SIZE, GameSession
from .view import render_board

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SessionEntry:
    """A live match plus the lock that serialises its input events."""

    game: GameSession
    last_seen: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class SessionStore:
    """Owns every live :class:`GameSession`, keyed by an opaque id."""

    def __init__(
        self,
        ttl_seconds: float,
        max_sessions: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: Dict[str, SessionEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self) -> Tuple[str, SessionEntry]:
        now = self._clock()
        with self._lock:
            self._prune(now)
            while len(self._sessions) >= self.max_sessions:
                oldest = min(self._sessions, key=lambda k: self._sessions[k].last_seen)
                logger.info("Evicting session %s: store is full", oldest)
                del self._sessions[oldest]
            session_id = uuid.uuid4().hex
            entry = SessionEntry(game=GameSession(), last_seen=now)
            self._sessions[session_id] = entry
        logger.info("Created session %s", session_id)
        return session_id, entry

    def get(self, session_id: str) -> SessionEntry:
        """Return the entry for ``session_id`` or raise ``KeyError``."""
        with self._lock:
            entry = self._sessions[session_id]
            entry.last_seen = self._clock()
            return entry

    def remove(self, session_id: str) -> bool:
        with self._lock:
            entry = self._sessions.pop(session_id, None)
        if entry is not None:
            logger.info("Removed session %s", session_id)
        return entry is not None

    def _prune(self, now: float) -> None:
        expired = [
            session_id
            for session_id, entry in self._sessions.items()
            if now - entry.last_seen >= self.ttl_seconds
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info("Pruned %d idle session(s)", len(expired))


class MoveRequest(BaseModel):
    """Request payload for clicking one of the nine cells."""

    index: int = Field(ge=0, le=BOARD_SIZE - 1, description="Cell index, row-major")


def _get_entry(store: SessionStore, session_id: str) -> SessionEntry:
    try:
        return store.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc


def _apply(
    store: SessionStore, session_id: str, action: Callable[[GameSession], T]
) -> Tuple[Dict[str, object], T]:
    """Run one input event against a session and render the result."""

    entry = _get_entry(store, session_id)
    with entry.lock:
        result = action(entry.game)
        state = render_board(entry.game)
    state["id"] = session_id
    return state, result


def _store(request: Request) -> SessionStore:
    return request.app.state.sessions


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and the session store it owns."""

    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title="Tic-Tac-Toe", description="Two-player tic-tac-toe played in the browser"
    )
    app.state.settings = settings
    app.state.sessions = SessionStore(
        ttl_seconds=settings.session_ttl_seconds,
        max_sessions=settings.max_sessions,
    )

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return HTML_PAGE

    @app.post("/api/session")
    def create_session(request: Request) -> Dict[str, object]:
        session_id, entry = _store(request).create()
        with entry.lock:
            state = render_board(entry.game)
        state["id"] = session_id
        return state

    @app.get("/api/session/{session_id}")
    def get_session(session_id: str, request: Request) -> Dict[str, object]:
        state, _ = _apply(_store(request), session_id, lambda game: None)
        return state

    @app.delete("/api/session/{session_id}")
    def delete_session(session_id: str, request: Request) -> Dict[str, object]:
        if not _store(request).remove(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return {"id": session_id, "deleted": True}

    @app.post("/api/session/{session_id}/move")
    def make_move(
        session_id: str, move: MoveRequest, request: Request
    ) -> Dict[str, object]:
        state, accepted = _apply(
            _store(request), session_id, lambda game: game.attempt_move(move.index)
        )
        state["moveAccepted"] = accepted
        return state

    @app.post("/api/session/{session_id}/reset-round")
    def reset_round(session_id: str, request: Request) -> Dict[str, object]:
        state, _ = _apply(_store(request), session_id, GameSession.reset_round)
        return state

    @app.post("/api/session/{session_id}/reset-match")
    def reset_match(session_id: str, request: Request) -> Dict[str, object]:
        state, _ = _apply(_store(request), session_id, GameSession.reset_match)
        return state

    return app


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic Tac Toe</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
        --primary: #1976d2;
        --secondary: #424242;
        --accent: #f50057;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: #f7f9fc;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: white;
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.12);
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(420px, 100%);
        text-align: center;
      }
      h1 {
        margin: 0 0 1rem;
        font-size: clamp(1.8rem, 2.4vw + 1.2rem, 2.4rem);
        letter-spacing: 0.04em;
      }
      #status {
        font-size: 1.15rem;
        font-weight: 600;
        min-height: 1.6rem;
        margin-bottom: 1rem;
      }
      #status .mark-x {
        color: var(--primary);
      }
      #status .mark-o,
      #status.won {
        color: var(--accent);
      }
      #status.draw {
        color: var(--secondary);
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.5rem;
        margin: 0 auto 1.5rem;
        max-width: 320px;
      }
      .cell {
        aspect-ratio: 1 / 1;
        font-size: clamp(1.8rem, 6vw, 2.6rem);
        font-weight: 700;
        background: #fff;
        border: 2px solid rgba(80, 100, 160, 0.25);
        border-radius: 10px;
        cursor: pointer;
        transition: transform 0.1s ease, box-shadow 0.1s ease;
        font-family: inherit;
      }
      .cell:hover:not(:disabled) {
        transform: translateY(-2px);
        box-shadow: 0 6px 16px rgba(50, 80, 160, 0.2);
      }
      .cell:disabled {
        cursor: default;
      }
      .cell.x {
        color: var(--primary);
      }
      .cell.o {
        color: var(--accent);
      }
      .cell.highlight {
        background: #fff3c4;
        border-color: var(--accent);
      }
      .controls {
        display: flex;
        gap: 0.75rem;
        justify-content: center;
        margin-bottom: 1.25rem;
      }
      .controls button {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: none;
        color: white;
        cursor: pointer;
        font-family: inherit;
      }
      #reset-round {
        background: var(--primary);
      }
      #reset-match {
        background: var(--secondary);
      }
      .score-board {
        display: flex;
        justify-content: center;
        gap: 2rem;
        font-size: 1.1rem;
        font-weight: 600;
      }
      #message {
        min-height: 1.25rem;
        color: #b00020;
        font-weight: 600;
        margin-top: 1rem;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>Tic Tac Toe</h1>
      <div id=\"status\" aria-live=\"polite\">Setting up your game…</div>
      <div id=\"board\" class=\"board\" role=\"grid\" aria-label=\"tic tac toe board\"></div>
      <div class=\"controls\">
        <button id=\"reset-round\" type=\"button\" aria-label=\"Reset game\">Reset Game</button>
        <button id=\"reset-match\" type=\"button\" aria-label=\"Reset score\">Reset Score</button>
      </div>
      <div class=\"score-board\">
        <div class=\"score score-x\">X: <span id=\"score-x\">0</span></div>
        <div class=\"score score-o\">O: <span id=\"score-o\">0</span></div>
      </div>
      <div id=\"message\" role=\"status\"></div>
    </main>
    <script>
      const boardContainer = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const scoreXEl = document.getElementById('score-x');
      const scoreOEl = document.getElementById('score-o');
      const resetRoundButton = document.getElementById('reset-round');
      const resetMatchButton = document.getElementById('reset-match');

      let sessionId = null;
      let gameState = null;
      let isRequestPending = false;

      async function startSession() {
        const response = await fetch('/api/session', { method: 'POST' });
        if (!response.ok) {
          throw new Error('Unable to start game');
        }
        setState(await response.json());
      }

      async function send(path, body) {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          if (!sessionId) {
            await startSession();
          }
          const options = { method: 'POST' };
          if (body !== undefined) {
            options.headers = { 'Content-Type': 'application/json' };
            options.body = JSON.stringify(body);
          }
          let response = await fetch(`/api/session/${sessionId}/${path}`, options);
          if (response.status === 404) {
            await startSession();
            response = await fetch(`/api/session/${sessionId}/${path}`, options);
          }
          if (!response.ok) {
            const payload = await response.json().catch(() => ({}));
            messageEl.textContent = payload?.detail || 'Request failed';
            return;
          }
          setState(await response.json());
        } catch (error) {
          messageEl.textContent = 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      function setState(data) {
        sessionId = data.id;
        gameState = data;
        renderBoard();
        updateStatus();
      }

      function renderBoard() {
        boardContainer.innerHTML = '';
        if (!gameState) return;
        gameState.cells.forEach((cell) => {
          const cellButton = document.createElement('button');
          cellButton.type = 'button';
          cellButton.classList.add('cell');
          if (cell.mark) {
            cellButton.textContent = cell.mark;
            cellButton.classList.add(cell.mark === 'X' ? 'x' : 'o');
            cellButton.setAttribute('aria-label', `Square ${cell.mark}`);
          } else {
            cellButton.setAttribute('aria-label', 'Empty square');
          }
          if (cell.highlight) {
            cellButton.classList.add('highlight');
          }
          cellButton.disabled = !cell.playable;
          cellButton.addEventListener('click', () => send('move', { index: cell.index }));
          boardContainer.appendChild(cellButton);
        });
      }

      function updateStatus() {
        statusEl.className = gameState.status === 'in_progress' ? '' : gameState.status.replace('_', '-');
        if (gameState.status === 'in_progress') {
          const mark = gameState.currentPlayer;
          statusEl.innerHTML = '';
          statusEl.append('Turn: ');
          const bold = document.createElement('b');
          bold.textContent = mark;
          bold.classList.add(mark === 'X' ? 'mark-x' : 'mark-o');
          statusEl.appendChild(bold);
        } else {
          statusEl.textContent = gameState.statusText;
        }
        scoreXEl.textContent = String(gameState.score.X);
        scoreOEl.textContent = String(gameState.score.O);
      }

      resetRoundButton.addEventListener('click', () => send('reset-round'));
      resetMatchButton.addEventListener('click', () => send('reset-match'));

      window.addEventListener('pagehide', (event) => {
        // Pages kept in the back/forward cache resume with the same session.
        if (sessionId && !event.persisted) {
          fetch(`/api/session/${sessionId}`, { method: 'DELETE', keepalive: true });
        }
      });

      startSession().catch((error) => {
        statusEl.textContent = '';
        messageEl.textContent = error.message || 'Network error. Please try again.';
      });
    </script>
  </body>
</html>
"""


app = create_app()
