"""Core board mechanics shared by the board server, the CLI and tests."""

import logging
import random
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

SIZE = 4
LENGTH = SIZE * SIZE


class Direction(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


def _line_table() -> Dict[Direction, np.ndarray]:
    # Each row of a table lists the cell indices of one line, starting at the
    # edge the tiles are pushed towards.
    grid = np.arange(LENGTH).reshape(SIZE, SIZE)
    return {
        Direction.LEFT: grid,
        Direction.RIGHT: np.fliplr(grid),
        Direction.UP: grid.T,
        Direction.DOWN: np.fliplr(grid.T),
    }


LINES = _line_table()


def index(row: int, col: int) -> int:
    assert 0 <= row < SIZE and 0 <= col < SIZE, f"cell ({row}, {col}) is off the board"
    return row * SIZE + col


class FreeCells:
    """Set of empty cell indices supporting a uniform random pick.

    Backed by a list plus a position map so add, discard and pick are O(1).
    """

    def __init__(self, indices: Iterable[int] = ()) -> None:
        self._items: List[int] = []
        self._positions: Dict[int, int] = {}
        for idx in indices:
            self.add(idx)

    def add(self, idx: int) -> None:
        if idx in self._positions:
            return
        self._positions[idx] = len(self._items)
        self._items.append(idx)

    def discard(self, idx: int) -> None:
        pos = self._positions.pop(idx, None)
        if pos is None:
            return
        last = self._items.pop()
        if last != idx:
            self._items[pos] = last
            self._positions[last] = pos

    def pick(self, rng) -> int:
        return self._items[rng.randrange(len(self._items))]

    def __contains__(self, idx: object) -> bool:
        return idx in self._positions

    def __iter__(self) -> Iterator[int]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


def _is_tile_value(value: int) -> bool:
    return value == 0 or (value >= 2 and value & (value - 1) == 0)


class Board:
    """A 4x4 grid of tiles with its score.

    Cells are stored row-major in a flat ``uint64`` vector. Every write goes
    through :meth:`_set_index` so the free-cell index never drifts from the
    grid.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._cells = np.zeros(LENGTH, dtype=np.uint64)
        self._free = FreeCells(range(LENGTH))
        self._score = 0
        self._rng = rng if rng is not None else random

    @property
    def score(self) -> int:
        return self._score

    @property
    def cells(self) -> List[int]:
        return self._cells.tolist()

    @property
    def free(self) -> FrozenSet[int]:
        return frozenset(self._free)

    def get(self, row: int, col: int) -> int:
        return int(self._cells[index(row, col)])

    def set(self, row: int, col: int, value: int) -> None:
        self._set_index(index(row, col), value)

    def _set_index(self, idx: int, value: int) -> None:
        self._cells[idx] = value
        if value == 0:
            self._free.add(idx)
        else:
            self._free.discard(idx)

    def _check_free(self) -> bool:
        return set(self._free) == {i for i in range(LENGTH) if self._cells[i] == 0}

    def set_random_free(self, value: int) -> None:
        """Place ``value`` on a random empty cell; a full board is left alone."""
        if not self._free:
            return
        idx = self._free.pick(self._rng)
        self._set_index(idx, value)
        logger.debug("spawned %d at cell %d", value, idx)
        assert self._check_free()

    def apply_move(self, direction: Direction) -> bool:
        """Slide and merge every line towards ``direction``.

        Returns True when at least one tile moved or merged.
        """
        changed = False
        for line in LINES[direction]:
            if self._compact_line(line.tolist()):
                changed = True
        assert self._check_free()
        return changed

    def _compact_line(self, line: Sequence[int]) -> bool:
        cells = self._cells
        changed = False
        i, j = 0, 1
        while i < SIZE and j < SIZE:
            target, source = line[i], line[j]
            current, incoming = int(cells[target]), int(cells[source])
            if incoming == 0:
                j += 1
            elif current == 0:
                # slides do not close position i, it may still merge
                self._set_index(target, incoming)
                self._set_index(source, 0)
                j += 1
                changed = True
            elif current == incoming:
                merged = current * 2
                self._set_index(target, merged)
                self._set_index(source, 0)
                self._score += merged
                i += 1
                j = i + 1
                changed = True
            else:
                i += 1
                j = i + 1
        return changed

    def can_merge(self) -> bool:
        grid = self._cells.reshape(SIZE, SIZE)
        return bool(np.any(grid[:, 1:] == grid[:, :-1]) or np.any(grid[1:] == grid[:-1]))

    def is_over(self) -> bool:
        return not self._free and not self.can_merge()

    def round(self, direction: Direction) -> bool:
        """Play one round and return True if the game is over afterwards."""
        if self.apply_move(direction):
            self.set_random_free(2)
        over = self.is_over()
        if over:
            logger.debug("board reached terminal state with score %d", self._score)
        return over

    def as_rows(self) -> List[List[int]]:
        return self._cells.reshape(SIZE, SIZE).tolist()

    def copy(self) -> "Board":
        clone = Board(self._rng)
        for idx, value in enumerate(self.cells):
            clone._set_index(idx, value)
        clone._score = self._score
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return bool(np.array_equal(self._cells, other._cells)) and self._score == other._score

    def __repr__(self) -> str:
        return f"Board(cells={self.cells}, score={self._score})"


Grid = Union[Sequence[int], Sequence[Sequence[int]]]


def _flatten(cells: Grid) -> List[int]:
    arr = np.asarray(cells)
    if arr.shape not in ((LENGTH,), (SIZE, SIZE)):
        raise ValueError(f"Expected {LENGTH} cells or a {SIZE}x{SIZE} grid, received shape {arr.shape}")
    if not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"Cells must be integers, received dtype {arr.dtype}")
    return [int(v) for v in arr.flatten()]


def new_game(rng: Optional[random.Random] = None) -> Board:
    """Fresh board seeded with a 2 and then a 4 on distinct random cells."""
    board = Board(rng)
    board.set_random_free(2)
    board.set_random_free(4)
    return board


def from_grid(cells: Grid, score: int = 0, rng: Optional[random.Random] = None) -> Board:
    values = _flatten(cells)
    bad = [v for v in values if not _is_tile_value(v)]
    if bad:
        raise ValueError(f"Cells must be 0 or a power of two >= 2, received {bad}")
    if score < 0:
        raise ValueError(f"Score must be non-negative, received {score}")

    board = Board(rng)
    for idx, value in enumerate(values):
        board._set_index(idx, value)
    board._score = int(score)
    return board


def round(board: Board, direction: Direction) -> bool:  # noqa: A001
    return board.round(direction)


def as_rows(board: Board) -> List[List[int]]:
    return board.as_rows()


def score(board: Board) -> int:
    return board.score


def valid_moves(board: Board) -> List[Direction]:
    allowed: List[Direction] = []
    for direction in Direction:
        if board.copy().apply_move(direction):
            allowed.append(direction)
    return allowed


__all__ = [
    "SIZE",
    "LENGTH",
    "Direction",
    "FreeCells",
    "Board",
    "new_game",
    "from_grid",
    "round",
    "as_rows",
    "score",
    "valid_moves",
]
