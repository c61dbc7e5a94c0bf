"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make GameModel easier to read
PieceColor = str
PlayerName = str


@dataclass
class GameModel:
    """Transport-safe representation of a chess game used between API, Service, DB, and Game layers.

    NOTE: The position after every move can be rebuilt by replaying `moves_uci` from `starting_fen`.
    `history_fen` holds the FEN after each move and `evaluations` / `qualities` hold the (optional) analysis attached to each move.
    `timestamps` are the ISO 8601 (UTC) times at which each move was played.
    """

    starting_fen: str
    current_fen: str
    moves_uci: list[str]
    history_fen: list[str]
    registered_players: dict[PieceColor, PlayerName]
    status: str
    mode: str = "ai"
    evaluations: list[Optional[float]] = field(default_factory=list)
    qualities: list[Optional[str]] = field(default_factory=list)
    timestamps: list[str] = field(default_factory=list)
