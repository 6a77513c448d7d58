"""Reading bingo board.

A 5x5 grid of reading prompts in row-major order. Cell 12 is the free
space and is always completed. A line (row, column or diagonal) is
complete when all five of its cells are.

The board only holds state; saving it is ChallengeManager's job.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from ..errors import InvalidInputError

GRID_SIZE = 5
CELL_COUNT = GRID_SIZE * GRID_SIZE
FREE_INDEX = 12
FREE_LABEL = "FREE SPACE"

DEFAULT_LABELS = [
    "A book with a blue cover",
    "A debut novel",
    "A book set in another country",
    "A book over 500 pages",
    "A book from a local author",
    "A classic",
    "A book by a woman author",
    "A book you own but never read",
    "A recommended book",
    "A book with a one-word title",
    "A graphic novel",
    "A book published this year",
    FREE_LABEL,
    "A mystery or thriller",
    "A translated book",
    "A memoir",
    "A book under 200 pages",
    "A book about science",
    "A re-read",
    "A book from your childhood",
    "Fantasy or sci-fi",
    "A book of poetry",
    "A book with an animal on the cover",
    "A book based on a true story",
    "A book your club picked",
]

# Rows, columns, then the two diagonals
LINES: list[tuple[int, ...]] = (
    [tuple(range(r * GRID_SIZE, (r + 1) * GRID_SIZE)) for r in range(GRID_SIZE)]
    + [tuple(range(c, CELL_COUNT, GRID_SIZE)) for c in range(GRID_SIZE)]
    + [
        tuple(i * (GRID_SIZE + 1) for i in range(GRID_SIZE)),
        tuple((i + 1) * (GRID_SIZE - 1) for i in range(GRID_SIZE)),
    ]
)


@dataclass
class BingoCell:
    """A single prompt on the board."""

    label: str
    completed: bool = False
    linked_book_id: Optional[str] = None
    linked_book_title: Optional[str] = None
    is_free: bool = False

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "BingoCell":
        return cls(
            label=data.get("label") or "",
            completed=bool(data.get("completed", False)),
            linked_book_id=data.get("linked_book_id"),
            linked_book_title=data.get("linked_book_title"),
            is_free=bool(data.get("is_free", False)),
        )


class BingoBoard:
    """25-cell bingo board with a pending selection state."""

    def __init__(self, cells: list[BingoCell]):
        if len(cells) != CELL_COUNT:
            raise InvalidInputError(f"A bingo board needs {CELL_COUNT} cells, got {len(cells)}")
        self.cells = cells
        # The free cell is completed whatever was stored
        free = self.cells[FREE_INDEX]
        free.is_free = True
        free.completed = True
        self.pending: Optional[int] = None

    @classmethod
    def new(cls, labels: Optional[list[str]] = None) -> "BingoBoard":
        """Create a fresh board from prompt labels (default prompts if None)."""
        labels = list(labels) if labels is not None else list(DEFAULT_LABELS)
        if len(labels) != CELL_COUNT:
            raise InvalidInputError(f"A bingo board needs {CELL_COUNT} prompts, got {len(labels)}")
        labels[FREE_INDEX] = FREE_LABEL
        return cls([BingoCell(label=label) for label in labels])

    @classmethod
    def from_dicts(cls, data: list[dict]) -> "BingoBoard":
        return cls([BingoCell.from_dict(d) for d in data])

    def to_dicts(self) -> list[dict]:
        return [cell.to_dict() for cell in self.cells]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < CELL_COUNT:
            raise InvalidInputError(f"Cell index must be 0-{CELL_COUNT - 1}, got {index}")

    def select(self, index: int) -> bool:
        """Select a cell.

        A completed cell is cleared. Any other cell becomes the pending
        selection, waiting for a book. The free cell ignores selection.

        Returns:
            True if the board changed and should be saved
        """
        self._check_index(index)
        if index == FREE_INDEX:
            return False
        if self.cells[index].completed:
            self.clear(index)
            return True
        self.pending = index
        return False

    def cancel(self) -> None:
        """Drop the pending selection."""
        self.pending = None

    def complete(self, index: int, book_id: str, book_title: str) -> None:
        """Complete the pending cell with a book."""
        self._check_index(index)
        if self.pending != index:
            raise InvalidInputError(f"Cell {index} is not waiting for a book")
        cell = self.cells[index]
        cell.completed = True
        cell.linked_book_id = book_id
        cell.linked_book_title = book_title
        self.pending = None

    def clear(self, index: int) -> None:
        """Uncomplete a cell and unlink its book."""
        self._check_index(index)
        if index == FREE_INDEX:
            raise InvalidInputError("The free space cannot be cleared")
        cell = self.cells[index]
        cell.completed = False
        cell.linked_book_id = None
        cell.linked_book_title = None
        if self.pending == index:
            self.pending = None

    def completed_lines(self) -> list[tuple[int, ...]]:
        """All fully completed lines, rescanned from scratch."""
        return [
            line
            for line in LINES
            if all(self.cells[i].completed or i == FREE_INDEX for i in line)
        ]

    def has_bingo(self) -> bool:
        return bool(self.completed_lines())

    @property
    def completed_count(self) -> int:
        return sum(1 for cell in self.cells if cell.completed)
