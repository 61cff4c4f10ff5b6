"""Tests for the terminal front end."""

import random
import unittest

from board_rules import from_grid
from play_cli import PROMPT, play, render_board


def _scripted(lines):
    pending = list(lines)
    prompts = []

    def read_line(prompt: str) -> str:
        prompts.append(prompt)
        if not pending:
            raise EOFError
        return pending.pop(0)

    return read_line, prompts


class PlayLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self.output = []

    def test_render_board_brackets_rows(self) -> None:
        rows = [[2, 0, 0, 0], [0, 4, 0, 0], [0, 0, 8, 0], [0, 0, 0, 16]]

        self.assertEqual(render_board(rows), "[2 0 0 0]\n[0 4 0 0]\n[0 0 8 0]\n[0 0 0 16]")

    def test_keys_map_to_moves(self) -> None:
        board = from_grid([2, 2] + [0] * 14, rng=random.Random(1))
        read_line, prompts = _scripted(["a", "exit"])

        play(board, read_line, self.output.append)

        self.assertEqual(board.get(0, 0), 4)
        self.assertEqual(board.score, 4)
        self.assertEqual(prompts, [PROMPT, PROMPT])

    def test_unknown_input_is_reported(self) -> None:
        board = from_grid([2] + [0] * 15)
        read_line, _ = _scripted(["x"])

        play(board, read_line, self.output.append)

        self.assertIn("Unknown move x. Try again.", self.output)
        self.assertEqual(board.cells, [2] + [0] * 15)

    def test_game_over_ends_loop(self) -> None:
        board = from_grid(
            [
                [4, 8, 16, 32],
                [8, 16, 32, 64],
                [16, 32, 64, 128],
                [0, 64, 128, 256],
            ]
        )
        read_line, prompts = _scripted(["a", "d"])

        play(board, read_line, self.output.append)

        self.assertIn("Game over", self.output)
        self.assertEqual(len(prompts), 1)
        self.assertEqual(self.output[-2], "[4 8 16 32]\n[8 16 32 64]\n[16 32 64 128]\n[64 128 256 2]")
        self.assertEqual(self.output[-1], "Score: 0")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
