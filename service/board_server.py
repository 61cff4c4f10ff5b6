import logging
import threading
from typing import Callable, Dict, Optional

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from board_rules import Board, Direction, new_game, valid_moves
from server_settings import Settings, load_settings

logger = logging.getLogger(__name__)

ACTIONS: Dict[str, Direction] = {direction.value: direction for direction in Direction}


class GameState:
    """The single shared board, guarded by one lock.

    A round (move, spawn, terminal check) runs under the lock, and snapshots
    are taken under it too, so readers never see a half-applied round.
    """

    def __init__(self, board_factory: Callable[[], Board] = new_game) -> None:
        self._lock = threading.Lock()
        self._board_factory = board_factory
        self._board = board_factory()
        self._is_over = self._board.is_over()

    def _snapshot_locked(self) -> Dict:
        return {
            "rows": self._board.as_rows(),
            "score": self._board.score,
            "over": self._is_over,
            "valid_moves": [direction.value for direction in valid_moves(self._board)],
        }

    def snapshot(self) -> Dict:
        with self._lock:
            return self._snapshot_locked()

    def apply_move(self, direction: Direction) -> Dict:
        with self._lock:
            if not self._is_over:
                self._is_over = self._board.round(direction)
                logger.info("Applied %s, score %d", direction.value, self._board.score)
                if self._is_over:
                    logger.info("Game over with score %d", self._board.score)
            return self._snapshot_locked()

    def reset(self) -> Dict:
        with self._lock:
            self._board = self._board_factory()
            self._is_over = self._board.is_over()
            logger.info("Board reset")
            return self._snapshot_locked()


def _game_state() -> GameState:
    return current_app.extensions["game_state"]


def parse_action(payload) -> Direction:
    if not isinstance(payload, dict) or "action" not in payload:
        raise ValueError("Payload must include 'action' key")
    action = payload["action"]
    if not isinstance(action, str) or action not in ACTIONS:
        raise ValueError(f"Unknown action: {action!r}. Expected one of {sorted(ACTIONS)}")
    return ACTIONS[action]


def create_app(state: Optional[GameState] = None, settings: Optional[Settings] = None) -> Flask:
    settings = settings or load_settings()

    app = Flask(__name__)
    app.extensions["game_state"] = state if state is not None else GameState()

    @app.get("/board")
    def get_board():
        return jsonify(_game_state().snapshot())

    @app.post("/board/move")
    def move_board():
        payload = request.get_json(silent=True)
        try:
            direction = parse_action(payload)
        except ValueError as exc:
            logger.warning("Rejected move payload %r: %s", payload, exc)
            return jsonify({"error": str(exc)}), 400

        return jsonify(_game_state().apply_move(direction))

    @app.post("/board/reset")
    def reset_board():
        return jsonify(_game_state().reset())

    CORS(
        app,
        resources={r"/board.*": {"origins": list(settings.allowed_origins)}},
        methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    return app


def main() -> None:
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="[%(levelname)s] %(message)s")

    app = create_app(settings=settings)
    logger.info("Serving board on %s:%d", settings.host, settings.port)
    app.run(host=settings.host, port=settings.port, debug=settings.debug)


if __name__ == "__main__":
    main()
