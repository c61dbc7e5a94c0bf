"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.exceptions import InvalidSquareError

# Chess board is always 8x8. Just in case we want to try some funky stuff, make it adjustable
BOARD_DIMENSIONS = (8, 8)
FILE_NAMES = "abcdefgh"[: BOARD_DIMENSIONS[0]]


@dataclass(frozen=True)
class Square:
    file: int
    rank: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a1' - 'h8' get converted to (1,1) - (8,8)"""
        if len(sq) != 2 or sq[0] not in FILE_NAMES or not sq[1].isdigit():
            raise InvalidSquareError(f"Cannot interpret {sq!r} as a square name.")
        square = cls(ord(sq[0]) - ord("a") + 1, int(sq[1]))
        if not square.is_within_bounds():
            raise InvalidSquareError(f"Square {sq!r} is not on the board.")
        return square

    def to_algebraic(self) -> str:
        return f"{chr(self.file + ord('a') - 1)}{self.rank}"

    @property
    def file_name(self) -> str:
        return chr(self.file + ord("a") - 1)

    def is_within_bounds(self) -> bool:
        return (1 <= self.file <= BOARD_DIMENSIONS[0]) and (
            1 <= self.rank <= BOARD_DIMENSIONS[1]
        )

    def offset(self, df: int, dr: int) -> Square:
        """The square reached by stepping (df, dr). Might fall off the board: check `is_within_bounds()`."""
        return Square(self.file + df, self.rank + dr)

    def is_light(self) -> bool:
        """a1 is a dark square"""
        return (self.file + self.rank) % 2 == 1

    def __str__(self) -> str:
        return self.to_algebraic()


# Ordered the way a FEN string reads them: a8..h8, a7..h7, ..., a1..h1
ALL_SQUARES: tuple[Square, ...] = tuple(
    Square(file, rank)
    for rank in range(BOARD_DIMENSIONS[1], 0, -1)
    for file in range(1, BOARD_DIMENSIONS[0] + 1)
)
