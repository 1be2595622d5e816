"""
Board & track model for Camel Up.

Holds the camel stacks on each space, the placed desert tiles and the
order in which camels crossed the finish line. Pure data plus queries;
movement lives in movement.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .constants import (
    CAMELS,
    CAMEL_NAMES,
    CRAZY,
    CRAZY_START_OFFSETS,
    DESERT_KINDS,
    NUM_SPACES,
    OASIS,
    START_SPACE,
    START_SPACES,
)


@dataclass
class Track:
    """
    The race track.

    Attributes:
        board: One stack per space. Each stack is a list of camel ids,
               ordered bottom to top. Empty spaces have [].
        desert_tiles: Dict mapping space index to (owner, kind) where kind
                      is "oasis" or "mirage".
        finish_order: Racing camels that crossed the finish line, first
                      finisher first.
        length: Number of spaces.
    """

    board: list[list[int]] = field(default_factory=list)
    desert_tiles: dict[int, tuple[int, str]] = field(default_factory=dict)
    finish_order: list[int] = field(default_factory=list)
    length: int = NUM_SPACES

    def __post_init__(self) -> None:
        """Initialize empty board if not provided."""
        if not self.board:
            self.board = [[] for _ in range(self.length)]
        if len(self.board) != self.length:
            raise ValueError(
                f"Board has {len(self.board)} spaces, expected {self.length}"
            )

    @property
    def finish_space(self) -> int:
        return self.length - 1

    @classmethod
    def create_random_start(
        cls,
        rng: Optional[np.random.Generator] = None,
        length: int = NUM_SPACES,
    ) -> Track:
        """
        Create a track with racing camels randomly placed on spaces 1-3 and
        the crazy unit on one of the last three spaces.

        Each camel is assigned a random starting space in a random order, so
        camels sharing a space form a stack in random order.

        Example:
            >>> track = Track.create_random_start(np.random.default_rng(1))
            >>> sum(len(stack) for stack in track.board)  # 5 racers + crazy unit
            6
        """
        if rng is None:
            rng = np.random.default_rng()

        track = cls(length=length)

        camel_order = list(CAMELS)
        rng.shuffle(camel_order)
        for camel in camel_order:
            space = int(rng.choice(START_SPACES))
            track.board[space].append(camel)

        offset = int(rng.choice(CRAZY_START_OFFSETS))
        track.board[length - offset].append(CRAZY)

        return track

    def get_camel_position(self, camel: int) -> tuple[int, int]:
        """
        Get the position and stack height of a camel.

        Returns:
            Tuple of (space_index, stack_height) where stack_height 0 is bottom.

        Raises:
            ValueError: If camel is not found on the board.
        """
        for space_idx, stack in enumerate(self.board):
            if camel in stack:
                return (space_idx, stack.index(camel))
        raise ValueError(f"Camel {camel} ({CAMEL_NAMES[camel]}) not found on board")

    def positions(self) -> dict[int, tuple[int, int]]:
        """Positions of every token on the board."""
        return {
            camel: (space_idx, height)
            for space_idx, stack in enumerate(self.board)
            for height, camel in enumerate(stack)
        }

    def get_rankings(self) -> list[int]:
        """
        Get racing camels in rank order from 1st to 5th place.

        Ranking rules:
        - Camels that crossed the finish line lead, in finish order
        - Then furthest position on track (higher space index = better)
        - Then higher in stack (top of stack = better)

        The crazy unit never takes part in the ranking.
        """
        camel_info: list[tuple[int, int, int]] = []
        for camel in CAMELS:
            if camel in self.finish_order:
                continue
            space, height = self.get_camel_position(camel)
            camel_info.append((camel, space, height))

        camel_info.sort(key=lambda x: (x[1], x[2]), reverse=True)

        return list(self.finish_order) + [camel for camel, _, _ in camel_info]

    def get_leader(self) -> int:
        return self.get_rankings()[0]

    def get_last_place(self) -> int:
        """Lowest space, then lowest in its stack, among racing camels."""
        return self.get_rankings()[-1]

    def get_leader_position(self) -> int:
        """Get the board position of the leading camel."""
        space, _ = self.get_camel_position(self.get_leader())
        return space

    def is_finished(self, camel: int) -> bool:
        return camel in self.finish_order

    def has_camels(self, space: int) -> bool:
        return bool(self.board[space])

    def desert_tile_space(self, owner: int) -> Optional[int]:
        """Space holding the player's desert tile, or None."""
        for space, (tile_owner, _) in self.desert_tiles.items():
            if tile_owner == owner:
                return space
        return None

    def desert_tile_problem(self, owner: int, space: int) -> Optional[str]:
        """
        Describe why a desert tile cannot go on this space, or None if it can.
        """
        if not 0 <= space < self.length:
            return f"space {space + 1} is off the track"
        if space in (START_SPACE, self.finish_space):
            return f"space {space + 1} is in the start/finish zone"
        if space in self.desert_tiles:
            return f"space {space + 1} already holds a desert tile"
        if self.has_camels(space):
            return f"space {space + 1} has camels on it"
        if self.desert_tile_space(owner) is not None:
            return f"player {owner} already has a desert tile on the board"
        return None

    def legal_desert_spaces(self, owner: int) -> list[int]:
        """Spaces where the player could place a desert tile right now."""
        if self.desert_tile_space(owner) is not None:
            return []
        return [
            space for space in range(self.length)
            if self.desert_tile_problem(owner, space) is None
        ]

    def place_desert_tile(self, owner: int, space: int, kind: str) -> None:
        """
        Place a desert tile on the board.

        Raises:
            ValueError: If the kind is unknown or the placement is invalid.
        """
        if kind not in DESERT_KINDS:
            raise ValueError(f"Unknown desert tile kind: {kind!r}")
        problem = self.desert_tile_problem(owner, space)
        if problem is not None:
            raise ValueError(f"Cannot place desert tile: {problem}")
        self.desert_tiles[space] = (owner, kind)

    def clear_desert_tiles(self) -> None:
        """Return every desert tile to its owner."""
        self.desert_tiles = {}

    def copy(self) -> Track:
        return Track(
            board=[list(stack) for stack in self.board],
            desert_tiles=dict(self.desert_tiles),
            finish_order=list(self.finish_order),
            length=self.length,
        )

    def __repr__(self) -> str:
        lines = ["Track:"]
        for space_idx, stack in enumerate(self.board):
            tile = self.desert_tiles.get(space_idx)
            if stack or tile:
                camel_str = ", ".join(CAMEL_NAMES[c] for c in stack)
                line = f"  Space {space_idx + 1}: [{camel_str}]"
                if tile:
                    owner, kind = tile
                    line += f" {'Oasis' if kind == OASIS else 'Mirage'} (P{owner})"
                lines.append(line)
        if self.finish_order:
            lines.append(
                "  Finished: " + ", ".join(CAMEL_NAMES[c] for c in self.finish_order)
            )
        return "\n".join(lines)
