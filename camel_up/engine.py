"""
Turn/action state machine for Camel Up.

`Game` owns one GameState and is its only writer. Every mutation goes
through `submit_action`, which validates the action, resolves it, emits
result events, runs the leg-end and game-end checks and advances the turn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from . import events as ev
from .actions import Action, PlaceDesertTile, PlaceRaceBet, RollDie, TakeLegBet
from .config import GameConfig
from .constants import CAMEL_NAMES
from .errors import InvalidAction
from .events import EventListener, GameEvent
from .game_state import GameState, Phase
from .movement import MoveResult
from .pyramid import DieRoll
from .scoring import ScoreResult, score_game, score_leg

logger = logging.getLogger(__name__)


@dataclass
class ActionOutcome:
    """
    Result of one accepted action.

    Attributes:
        player: Seat that acted.
        action: The action taken.
        events: Events emitted while resolving it, in order.
        roll: Die drawn (RollDie only).
        move: Movement result (RollDie only).
        leg_score: Leg scoring triggered by this action, if any.
        game_score: Final scoring triggered by this action, if any.
    """

    player: int
    action: Action
    events: list[GameEvent] = field(default_factory=list)
    roll: Optional[DieRoll] = None
    move: Optional[MoveResult] = None
    leg_score: Optional[ScoreResult] = None
    game_score: Optional[ScoreResult] = None

    @property
    def leg_ended(self) -> bool:
        return self.leg_score is not None

    @property
    def game_ended(self) -> bool:
        return self.game_score is not None


class Game:
    """
    One Camel Up game.

    Example:
        >>> game = Game(GameConfig(num_players=2, seed=7))
        >>> outcome = game.submit_action(0, RollDie())
        >>> outcome.roll.value in (1, 2, 3)
        True
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        state: Optional[GameState] = None,
    ):
        """
        Args:
            config: Game settings. Defaults to GameConfig().
            state: Existing state to adopt (e.g. from a host snapshot).
                   A fresh random start is created from config if None.
        """
        self.config = config if config is not None else GameConfig()
        self.state = state if state is not None else GameState.create(self.config)
        self.events: list[GameEvent] = []
        self._listeners: list[EventListener] = []
        self._emit(ev.GAME_STARTED, num_players=self.state.num_players)

    # =========================================================================
    # Read side
    # =========================================================================

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def current_player(self) -> int:
        return self.state.current_player

    def snapshot(self) -> GameState:
        """Read-only copy of the current state for UIs, AIs and relays."""
        return self.state.copy()

    def valid_actions(self, player: Optional[int] = None) -> list[Action]:
        """Actions the player (default: current player) may submit now."""
        if player is None:
            player = self.state.current_player
        return self.state.get_valid_actions(player)

    def events_since(self, seq: int) -> list[GameEvent]:
        return [e for e in self.events if e.seq > seq]

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """
        Call `listener` with every future event once the action that
        produced it has been fully applied. A listener that raises is logged
        and skipped; it never affects the game.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Write side
    # =========================================================================

    def submit_action(self, player: int, action: Action) -> ActionOutcome:
        """
        Validate and resolve one action.

        Raises:
            InvalidAction: If the action is not allowed now. The state is
                           left unchanged.
        """
        error = self.state.check_action(player, action)
        if error is not None:
            logger.debug("Rejected %r from player %d: %s", action, player, error)
            raise error

        first_event = len(self.events)
        outcome = ActionOutcome(player=player, action=action)
        self.state.has_acted = True

        if isinstance(action, RollDie):
            self._resolve_roll(outcome)
        elif isinstance(action, TakeLegBet):
            value = self.state.take_bet_tile(player, action.camel)
            self._emit(
                ev.LEG_BET_TAKEN,
                player=player,
                camel=action.camel,
                camel_name=CAMEL_NAMES[action.camel],
                value=value,
            )
        elif isinstance(action, PlaceDesertTile):
            self.state.place_desert_tile(player, action.space, action.tile)
            self._emit(ev.DESERT_TILE_PLACED, player=player, space=action.space, tile=action.tile)
        elif isinstance(action, PlaceRaceBet):
            self.state.place_race_bet(player, action.camel, action.winner)
            # Which camel is hidden from other players; only the side is public
            self._emit(ev.RACE_BET_PLACED, player=player, winner=action.winner)

        logger.info("Player %d: %s", player, action.describe())

        if self.state.phase != Phase.GAME_END:
            self.state.advance_turn()
            self._emit(ev.TURN_ADVANCED, player=self.state.current_player)

        outcome.events = self.events[first_event:]
        self._notify(outcome.events)
        return outcome

    def start_next_leg(self) -> None:
        """
        Leave LEG_END and start the next leg (auto_advance_legs=False only).

        Raises:
            InvalidAction: If the game is not waiting between legs.
        """
        if self.state.phase != Phase.LEG_END:
            raise InvalidAction(
                f"No leg to advance from in phase {self.state.phase.value}",
                reason="leg_not_over",
            )
        self.state.start_new_leg()
        self._emit(ev.LEG_STARTED, leg=self.state.current_leg)
        self._notify(self.events[-1:])

    def restart(self, config: Optional[GameConfig] = None) -> None:
        """Throw the current game away and deal a new one."""
        if config is not None:
            self.config = config
        self.state = GameState.create(self.config)
        self.events = []
        self._emit(ev.GAME_STARTED, num_players=self.state.num_players)
        self._notify(self.events)

    # =========================================================================
    # Internals
    # =========================================================================

    def _resolve_roll(self, outcome: ActionOutcome) -> None:
        roll, move = self.state.roll_die_for_player(outcome.player)
        outcome.roll, outcome.move = roll, move

        self._emit(
            ev.DIE_ROLLED,
            player=outcome.player,
            camel=roll.camel,
            camel_name=CAMEL_NAMES[roll.camel],
            value=roll.value,
            crazy_color=roll.crazy_color,
            dice_remaining=self.state.dice_remaining,
        )
        self._emit(
            ev.CAMEL_MOVED,
            camel=move.camel,
            origin=move.origin,
            raw_target=move.raw_target,
            final_space=move.final_space,
            moved=list(move.moved),
            landed_on_bottom=move.landed_on_bottom,
            positions={str(c): list(pos) for c, pos in move.positions.items()},
            newly_finished=list(move.newly_finished),
        )
        if move.desert_tile is not None:
            space, owner, kind = move.desert_tile
            self._emit(ev.DESERT_PAYOUT, player=owner, space=space, tile=kind)

        if self.state.is_game_complete():
            self._end_game(outcome)
        elif self.state.is_leg_complete():
            self._end_leg(outcome)

    def _end_leg(self, outcome: ActionOutcome) -> None:
        self.state.phase = Phase.LEG_END
        outcome.leg_score = score_leg(self.state)
        self._emit_score(ev.LEG_SCORED, outcome.leg_score, leg=self.state.current_leg)
        if self.config.auto_advance_legs:
            self.state.start_new_leg()
            self._emit(ev.LEG_STARTED, leg=self.state.current_leg)

    def _end_game(self, outcome: ActionOutcome) -> None:
        self.state.phase = Phase.LEG_END
        outcome.leg_score = score_leg(self.state)
        self._emit_score(ev.LEG_SCORED, outcome.leg_score, leg=self.state.current_leg)

        outcome.game_score = score_game(self.state)
        self.state.phase = Phase.GAME_END

        top = max(self.state.player_coins)
        self._emit_score(
            ev.GAME_ENDED,
            outcome.game_score,
            coins=self.state.player_coins,
            winners=[p.id for p in self.state.players if p.coins == top],
        )
        logger.info("Game over: coins %s", self.state.player_coins)

    def _emit_score(self, kind: str, score: ScoreResult, **data) -> None:
        self._emit(
            kind,
            rankings=list(score.rankings),
            deltas={str(p): d for p, d in score.deltas.items()},
            payouts=[
                {"player": p.player, "amount": p.amount, "reason": p.reason, "camel": p.camel}
                for p in score.payouts
            ],
            **data,
        )

    def _emit(self, kind: str, **data) -> None:
        self.events.append(GameEvent(seq=len(self.events) + 1, kind=kind, data=data))

    def _notify(self, events: list[GameEvent]) -> None:
        for event in events:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception as e:
                    logger.exception("Event listener failed on %s: %s", event.kind, e)
