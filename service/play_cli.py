import argparse
import logging
import random
from typing import Callable, List, Optional, Sequence

from board_rules import Board, Direction, new_game

logger = logging.getLogger(__name__)

PROMPT = "a, w, s, d or exit: "
KEY_TO_DIRECTION = {
    "a": Direction.LEFT,
    "d": Direction.RIGHT,
    "w": Direction.UP,
    "s": Direction.DOWN,
}


def render_board(rows: Sequence[Sequence[int]]) -> str:
    return "\n".join("[" + " ".join(str(value) for value in row) + "]" for row in rows)


def play(
    board: Board,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> Board:
    """Run the interactive loop until the game ends, the player exits, or input runs out."""
    while True:
        write(render_board(board.as_rows()))
        write(f"Score: {board.score}")
        try:
            command = read_line(PROMPT).strip()
        except EOFError:
            break

        if command == "exit":
            break

        direction = KEY_TO_DIRECTION.get(command)
        if direction is None:
            write(f"Unknown move {command}. Try again.")
            continue

        if board.round(direction):
            write("Game over")
            write(render_board(board.as_rows()))
            write(f"Score: {board.score}")
            break

    return board


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Play the sliding tile merge puzzle in the terminal")
    parser.add_argument("--seed", type=int, default=None, help="seed for reproducible tile spawns")
    parser.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="[%(levelname)s] %(message)s")

    rng = random.Random(args.seed) if args.seed is not None else None
    board = play(new_game(rng))
    logger.info("Finished with score %d", board.score)


if __name__ == "__main__":
    main()
