"""
Movement resolver: applies one die result to the track.

Handles camel stacking, desert tile effects and the crazy camel's
backward, land-underneath movement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .constants import CAMELS, CRAZY, DESERT_EFFECTS, MIRAGE, START_SPACE
from .track import Track


@dataclass
class MoveResult:
    """
    Outcome of resolving one move.

    Attributes:
        camel: The camel whose die was rolled.
        distance: Rolled distance.
        origin: Space the camel started on.
        raw_target: Target before any desert tile effect.
        final_space: Space the moving group ended on.
        moved: Tokens that relocated, bottom to top.
        landed_on_bottom: True if the group was placed under the target stack.
        desert_tile: (space, owner, kind) of the tile that was hit, if any.
        newly_finished: Racing camels that crossed the finish line, leader first.
        positions: New (space, height) for every token on the origin and
                   final spaces, including camels shifted by the move.
    """

    camel: int
    distance: int
    origin: int
    raw_target: int
    final_space: int
    moved: list[int] = field(default_factory=list)
    landed_on_bottom: bool = False
    desert_tile: Optional[tuple[int, int, str]] = None
    newly_finished: list[int] = field(default_factory=list)
    positions: dict[int, tuple[int, int]] = field(default_factory=dict)

    @property
    def crossed_finish(self) -> bool:
        return bool(self.newly_finished)

    @property
    def desert_tile_owner(self) -> Optional[int]:
        return self.desert_tile[1] if self.desert_tile else None


def resolve_move(track: Track, camel: int, distance: int) -> MoveResult:
    """
    Move a camel (and whatever it carries) on the track, in place.

    Racing camels move forward carrying every camel above them and land on
    top of the target stack. The crazy unit moves backward alone and lands
    underneath the target stack. Landing on a desert tile shifts the target
    by one space (Oasis forward on top, Mirage backward underneath); the
    coin owed to the tile owner is reported in the result, not paid here.

    Args:
        track: Track to mutate.
        camel: Camel id (0-4) or CRAZY.
        distance: Number of spaces to move (normally 1-3).

    Returns:
        MoveResult describing the move.

    Example:
        >>> track = Track()
        >>> track.board[4] = [RED]
        >>> resolve_move(track, RED, 2).final_space
        6
    """
    if distance < 0:
        raise ValueError(f"Distance must be non-negative, got {distance}")

    origin, height = track.get_camel_position(camel)

    if distance == 0:
        return MoveResult(
            camel=camel,
            distance=0,
            origin=origin,
            raw_target=origin,
            final_space=origin,
            positions=_positions_on(track, origin),
        )

    if camel == CRAZY:
        return _move_crazy(track, origin, height, distance)
    return _move_racing(track, camel, origin, height, distance)


def _move_racing(
    track: Track, camel: int, origin: int, height: int, distance: int
) -> MoveResult:
    # Get the moving group (this camel and all above it)
    moving = track.board[origin][height:]
    track.board[origin] = track.board[origin][:height]

    raw_target = origin + distance
    result = MoveResult(
        camel=camel,
        distance=distance,
        origin=origin,
        raw_target=raw_target,
        final_space=raw_target,
        moved=list(moving),
    )

    if raw_target >= track.length:
        # Crossed the line: clamp to the finish space, no desert tile there
        result.final_space = track.finish_space
        finishers = [c for c in reversed(moving) if c in CAMELS and not track.is_finished(c)]
        track.finish_order.extend(finishers)
        result.newly_finished = finishers
    else:
        _apply_desert_tile(track, result)

    if result.landed_on_bottom:
        track.board[result.final_space] = moving + track.board[result.final_space]
    else:
        track.board[result.final_space].extend(moving)

    result.positions = _positions_on(track, origin, result.final_space)
    return result


def _move_crazy(track: Track, origin: int, height: int, distance: int) -> MoveResult:
    # Only the crazy token relocates; camels above it drop down
    del track.board[origin][height]

    raw_target = max(START_SPACE, origin - distance)
    result = MoveResult(
        camel=CRAZY,
        distance=distance,
        origin=origin,
        raw_target=raw_target,
        final_space=raw_target,
        moved=[CRAZY],
        landed_on_bottom=True,
    )
    _apply_desert_tile(track, result)

    track.board[result.final_space].insert(0, CRAZY)

    result.positions = _positions_on(track, origin, result.final_space)
    return result


def _apply_desert_tile(track: Track, result: MoveResult) -> None:
    """Shift the landing space if the raw target holds a desert tile."""
    tile = track.desert_tiles.get(result.raw_target)
    if tile is None:
        return

    owner, kind = tile
    result.desert_tile = (result.raw_target, owner, kind)
    destination = result.raw_target + DESERT_EFFECTS[kind]
    result.final_space = max(START_SPACE, min(destination, track.finish_space))
    if kind == MIRAGE:
        result.landed_on_bottom = True


def _positions_on(track: Track, *spaces: int) -> dict[int, tuple[int, int]]:
    positions: dict[int, tuple[int, int]] = {}
    for space in spaces:
        for height, token in enumerate(track.board[space]):
            positions[token] = (space, height)
    return positions
