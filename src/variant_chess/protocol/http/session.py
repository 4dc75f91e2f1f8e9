from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from ...engine.game import Game


@dataclass
class Session:
    """One live game plus the lock that serializes its mutations.

    Handlers that take the lock are plain ``def`` endpoints, so they run on
    the worker threadpool and concurrent requests for one game queue here.
    """

    game: Game
    lock: threading.RLock = field(default_factory=threading.RLock)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions

    The store lock guards the mapping only; moves and undos on one game take
    that session's own lock so different games never block each other.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, Session] = {}

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        with self._lock:
            self._sessions[gid] = Session(game)
        return gid

    def get(self, game_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(game_id)

    def delete(self, game_id: str) -> None:
        with self._lock:
            if game_id in self._sessions:
                del self._sessions[game_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
