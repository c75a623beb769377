"""
Game engine: the only component that mutates a GameState.

Action methods validate their preconditions and return False (or None)
without touching state when they do not hold. A successful action emits
exactly one state-changed notification to the subscribed observers;
animation events are emitted as they happen.
"""

import logging
import math
import random
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence

from econwars.cards import (
    AdvanceGoCard,
    AdvanceToCard,
    AdvanceTourismCard,
    AdvanceUnownedCard,
    AgricultureBonusCard,
    AllGainInfluenceCard,
    ArmsDealCard,
    CardBase,
    CollectCard,
    CollectFromAllCard,
    CulturalExchangeCard,
    FreeAllSanctionedCard,
    FreeUpgradeCard,
    GainInfluenceCard,
    GetOutFreeCard,
    GoSanctionsCard,
    LoseDevelopmentCard,
    LosePercentageCard,
    OilBonusCard,
    PayAllPlayersCard,
    PayCard,
    PerCountryBonusCard,
    PerDevelopmentBonusCard,
    PerPropertyCollectCard,
    RentModifierCard,
    TechHubBonusCard,
    TourismPenaltyCard,
    TradeWarTaxCard,
    immunity_card,
)
from econwars.config import (
    CAPITAL_LEVEL,
    DEVELOPMENT_TIERS,
    TECH_HUB_LEVEL,
    Resource,
    influence_actions,
)
from econwars.events import AnimationEvent, AnimationType, EngineObserver, LogKind
from econwars.game import ActiveEffect, DiceRoll, EffectType, GameState, Phase
from econwars.player import Player
from econwars.spaces import (
    CardSpace,
    CountrySpace,
    DeckType,
    InfrastructureSpace,
    OwnableSpace,
    SpecialKind,
    SpecialSpace,
    TaxSpace,
    TransportSpace,
)
from econwars.trade import PropertyTerms, TradeOffer, TradeStatus

logger = logging.getLogger(__name__)


class GameEngine:
    """Rule executor and turn state machine for one game."""

    def __init__(self, state: GameState, rng: Optional[random.Random] = None):
        self.state = state
        self.config = state.config
        self.rng = rng or random.Random(state.config.seed)
        self._observers: List[EngineObserver] = []

    @classmethod
    def from_document(cls, document: Dict[str, Any], rng: Optional[random.Random] = None) -> "GameEngine":
        """Resume an engine from a saved snapshot document."""
        from econwars.snapshot import from_document

        return cls(from_document(document), rng)

    # ---- Observers ----

    def subscribe(self, observer: EngineObserver) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _emit_state(self) -> None:
        for observer in list(self._observers):
            observer.on_state_changed(self.state)

    def _animate(self, kind: AnimationType, data: Dict[str, Any], private_to: Optional[str] = None) -> None:
        event = AnimationEvent(kind, data, private_to)
        for observer in list(self._observers):
            observer.on_animation(event)

    def _log(self, message: str, kind: LogKind = LogKind.INFO) -> None:
        self.state.log.log(message, kind, turn=self.state.turn_number)

    def _commit(self) -> None:
        """Resolve insolvency and victory, then publish the new state."""
        self._settle_insolvencies()
        self._check_win()
        if not self.state.game_over and self.state.current_player().bankrupt:
            self._next_turn()
        self._emit_state()

    # ---- Queries ----

    def current_player(self) -> Player:
        return self.state.current_player()

    def is_current(self, player_id: Optional[str]) -> bool:
        return player_id is not None and self.state.current_player().id == player_id

    def _acting_player(self, player_id: Optional[str]) -> Optional[Player]:
        """Current player, if `player_id` is omitted or names them."""
        player = self.state.current_player()
        if player_id is not None and player.id != player_id:
            return None
        return player

    def is_insolvent(self, player: Player) -> bool:
        return not player.bankrupt and player.money < 0

    def has_liquidatable_assets(self, player: Player) -> bool:
        for sid in player.properties:
            own = self.state.ownership[sid]
            if own.development_level > 0 or not own.mortgaged:
                return True
        return False

    def calculate_go_salary(self, player: Player) -> int:
        steps = player.influence // self.config.salary_influence_step
        return self.config.go_salary + steps * self.config.salary_influence_bonus

    def calculate_rent(self, space_id: int, dice_total: Optional[int] = None) -> int:
        """
        Rent a visitor would pay on a space right now.

        Mortgaged or unowned spaces, and every space of an embargoed owner,
        earn nothing; other active effects apply in list order.
        """
        state = self.state
        space = state.space(space_id)
        own = state.ownership.get(space_id)
        if space is None or own is None or own.owner_id is None or own.mortgaged:
            return 0
        owner_id = own.owner_id

        for effect in state.active_effects:
            if effect.type is EffectType.EMBARGO and effect.target_id == owner_id:
                return 0

        if dice_total is None:
            dice_total = state.last_dice.total if state.last_dice else 7

        if isinstance(space, TransportSpace):
            return space.get_rent(state.transport_count(owner_id))

        if isinstance(space, InfrastructureSpace):
            if state.infrastructure_count(owner_id) >= 2:
                return dice_total * self.config.infrastructure_pair_multiplier
            return dice_total * self.config.infrastructure_multiplier

        if not isinstance(space, CountrySpace):
            return 0

        level = own.development_level
        rent = space.base_rent(level)
        complete = state.has_complete_alliance(owner_id, space.alliance)
        if complete and level == 0:
            rent *= 2
        if complete and level > 0 and space.alliance == "EU":
            rent *= 2
        if complete and space.alliance == "SOUTH_ASIAN":
            rent += self.config.south_asian_surcharge

        bonus_pct = round(self.config.resource_bonus * 100) * len(state.distinct_resources(owner_id))
        rent = rent * (100 + bonus_pct) // 100

        for effect in state.active_effects:
            if effect.type is EffectType.HALF_RENT:
                rent //= 2
            elif effect.type is EffectType.TECH_DOUBLE_RENT and space.resource is Resource.TECH:
                rent *= 2
            elif effect.type is EffectType.TECH_HALF_RENT and space.resource is Resource.TECH:
                rent //= 2
        return rent

    def development_cost(self, space_id: int) -> Optional[int]:
        """Cost of the next development level, or None if it cannot be built."""
        state = self.state
        space = state.space(space_id)
        own = state.ownership.get(space_id)
        if not isinstance(space, CountrySpace) or own is None or own.owner_id is None:
            return None
        if own.development_level >= CAPITAL_LEVEL:
            return None

        next_level = own.development_level + 1
        cost = math.floor(space.price * DEVELOPMENT_TIERS[next_level].cost_multiplier)
        complete = state.has_complete_alliance(own.owner_id, space.alliance)

        if next_level == TECH_HUB_LEVEL and space.alliance == "ASIAN_TIGERS" and complete:
            cost //= 2

        if next_level == CAPITAL_LEVEL:
            if not complete:
                return None
            for member in state.board.alliance_spaces(space.alliance):
                other = state.ownership[member.space_id]
                if other.owner_id == own.owner_id and other.development_level == CAPITAL_LEVEL:
                    return None
        return cost

    def development_refund(self, price: int, level: int) -> int:
        """Half the build cost of one level."""
        return math.floor(price * DEVELOPMENT_TIERS[level].cost_multiplier * self.config.liquidation_rate)

    def unmortgage_cost(self, space_id: int) -> Optional[int]:
        space = self.state.space(space_id)
        if not isinstance(space, OwnableSpace):
            return None
        principal = math.floor(space.price * self.config.mortgage_rate)
        return principal + round(principal * self.config.mortgage_interest_rate)

    def total_wealth(self, player: Player) -> int:
        """Cash, property face value, cumulative build cost and influence x 10."""
        wealth = player.money
        for sid in player.properties:
            space = self.state.space(sid)
            wealth += space.price
            level = self.state.ownership[sid].development_level
            for i in range(1, level + 1):
                wealth += math.floor(space.price * DEVELOPMENT_TIERS[i].cost_multiplier)
        return wealth + player.influence * 10

    # ---- Turn actions ----

    def roll_dice(self, player_id: Optional[str] = None) -> Optional[DiceRoll]:
        """Roll for the current player and resolve the move and landing."""
        state = self.state
        if state.game_over or state.phase is not Phase.PRE_ROLL:
            return None
        player = self._acting_player(player_id)
        if player is None:
            return None
        if player.bankrupt:
            self._next_turn()
            self._emit_state()
            return None

        dice = DiceRoll(self.rng.randint(1, 6), self.rng.randint(1, 6))
        state.last_dice = dice
        state.phase = Phase.ROLLING
        self._animate(
            AnimationType.DICE,
            {"player_id": player.id, "d1": dice.d1, "d2": dice.d2, "total": dice.total, "is_doubles": dice.is_doubles},
        )
        self._log(
            f"{player.name} rolled {dice.d1} + {dice.d2} = {dice.total}{' (Doubles!)' if dice.is_doubles else ''}"
        )

        if player.in_sanctions:
            if dice.is_doubles:
                self._release(player)
                self._log(f"{player.name} rolled doubles and escapes Trade Sanctions!", LogKind.SUCCESS)
            elif player.sanctions_turns >= self.config.max_sanctions_turns:
                self._release(player)
                player.money -= self.config.sanctions_bail
                self._log(
                    f"{player.name} forced to pay ${self.config.sanctions_bail} bail after "
                    f"{self.config.max_sanctions_turns} turns in Sanctions.",
                    LogKind.WARNING,
                )
            else:
                player.sanctions_turns += 1
                self._log(
                    f"{player.name} remains in Trade Sanctions "
                    f"(turn {player.sanctions_turns}/{self.config.max_sanctions_turns})."
                )
                state.phase = Phase.END_TURN
                self._commit()
                return dice

        if dice.is_doubles:
            player.doubles_count += 1
            if player.doubles_count >= self.config.max_doubles:
                self._send_to_sanctions(player)
                self._log(f"{player.name} rolled {self.config.max_doubles} doubles in a row! Sent to Trade Sanctions!", LogKind.WARNING)
                state.phase = Phase.END_TURN
                self._commit()
                return dice
        else:
            player.doubles_count = 0

        self._move(player, dice.total)
        self._commit()
        return dice

    def pay_bail(self, player_id: Optional[str] = None) -> bool:
        state = self.state
        player = self._acting_player(player_id)
        if state.game_over or player is None or state.phase is not Phase.PRE_ROLL:
            return False
        if not player.in_sanctions or player.money < self.config.sanctions_bail:
            return False
        player.money -= self.config.sanctions_bail
        self._release(player)
        self._log(f"{player.name} pays ${self.config.sanctions_bail} to exit Trade Sanctions.")
        self._commit()
        return True

    def use_immunity(self, player_id: Optional[str] = None) -> bool:
        state = self.state
        player = self._acting_player(player_id)
        if state.game_over or player is None or state.phase is not Phase.PRE_ROLL:
            return False
        if not player.in_sanctions or not player.has_get_out_free:
            return False
        player.has_get_out_free = False
        self._release(player)
        state.decks[DeckType.DIPLOMATIC_CABLE].put_back(immunity_card())
        self._log(f"{player.name} uses Diplomatic Immunity to escape Sanctions!", LogKind.SUCCESS)
        self._commit()
        return True

    def buy_property(self, player_id: Optional[str] = None) -> bool:
        """Buy the unowned space the current player stands on."""
        state = self.state
        player = self._acting_player(player_id)
        if state.game_over or player is None or state.phase is not Phase.ACTION:
            return False
        space = state.space(player.position)
        own = state.ownership.get(player.position)
        if not isinstance(space, OwnableSpace) or own is None or own.owner_id is not None:
            return False

        price = space.price
        if state.pending_purchase_discount:
            price = math.floor(price * (1 - state.pending_purchase_discount))
        if player.money < price:
            return False

        player.money -= price
        own.owner_id = player.id
        player.properties.append(space.space_id)
        player.add_influence(self.config.purchase_influence)
        state.pending_purchase_discount = None
        state.phase = Phase.END_TURN

        self._log(f"{player.name} purchases {space.name} for ${price}!", LogKind.PURCHASE)
        self._animate(AnimationType.PURCHASE, {"player_id": player.id, "space_id": space.space_id, "price": price})
        self._commit()
        return True

    def decline_purchase(self, player_id: Optional[str] = None) -> bool:
        state = self.state
        player = self._acting_player(player_id)
        if state.game_over or player is None or state.phase is not Phase.ACTION:
            return False
        state.pending_purchase_discount = None
        state.phase = Phase.END_TURN
        self._log(f"{player.name} declines to buy {state.space(player.position).name}.")
        self._commit()
        return True

    def end_turn(self, player_id: Optional[str] = None) -> bool:
        """
        Finish the current turn.

        Blocked while the player is insolvent and still holds assets to
        liquidate. Doubles (outside sanctions) grant the same player another
        roll.
        """
        state = self.state
        player = self._acting_player(player_id)
        if state.game_over or player is None:
            return False
        if not player.bankrupt and state.phase is not Phase.END_TURN:
            return False
        if self.is_insolvent(player) and self.has_liquidatable_assets(player):
            return False

        player.turns_played += 1
        state.pending_purchase_discount = None
        if state.last_dice and state.last_dice.is_doubles and not player.in_sanctions and not player.bankrupt:
            state.phase = Phase.PRE_ROLL
            state.current_card = None
            self._log(f"{player.name} gets another turn (doubles)!")
        else:
            self._next_turn()
        self._commit()
        return True

    def skip_turn(self) -> bool:
        """
        Force the turn past the current player.

        Used for absent players: a pending purchase is declined and any
        debt is settled by selling developments, then mortgaging, then
        bankruptcy.
        """
        state = self.state
        if state.game_over:
            return False
        player = state.current_player()
        state.pending_purchase_discount = None
        if self.is_insolvent(player):
            self._auto_liquidate(player)
        self._log(f"{player.name}'s turn is skipped.", LogKind.WARNING)
        if not state.game_over and not player.bankrupt:
            self._next_turn()
        self._commit()
        return True

    def end_game(self) -> bool:
        """Force the game to end; the richest active player wins."""
        if self.state.game_over:
            return False
        self._end_game()
        self._emit_state()
        return True

    # ---- Connection status ----

    def set_connected(self, player_id: str, connected: bool) -> bool:
        player = self.state.get_player(player_id)
        if player is None or player.connected == connected:
            return False
        player.connected = connected
        self._log(f"{player.name} {'reconnected' if connected else 'disconnected'}.")
        self._emit_state()
        return True

    def forfeit(self, player_id: str) -> bool:
        """Remove a player from play, releasing their properties."""
        player = self.state.get_player(player_id)
        if self.state.game_over or player is None or player.bankrupt:
            return False
        player.connected = False
        self._log(f"{player.name} leaves the game.", LogKind.WARNING)
        self._declare_bankruptcy(player)
        self._commit()
        return True

    # ---- Property management ----

    def develop_property(self, player_id: str, space_id: int) -> bool:
        player, space, own = self._owned_country(player_id, space_id)
        if player is None or own.mortgaged:
            return False
        if not self.state.has_complete_alliance(player_id, space.alliance):
            return False
        cost = self.development_cost(space_id)
        if cost is None or player.money < cost:
            return False

        player.money -= cost
        self._raise_level(player, space, own)
        self._log(
            f"{player.name} develops {space.name} to {DEVELOPMENT_TIERS[own.development_level].name} (${cost})!",
            LogKind.DEVELOPMENT,
        )
        self._commit()
        return True

    def free_upgrade_property(self, player_id: str, space_id: int) -> bool:
        player, space, own = self._owned_country(player_id, space_id)
        if player is None or own.mortgaged or not player.has_free_upgrade:
            return False
        if not self.state.has_complete_alliance(player_id, space.alliance):
            return False
        if self.development_cost(space_id) is None:
            return False

        player.has_free_upgrade = False
        self._raise_level(player, space, own)
        self._log(
            f"{player.name} freely develops {space.name} to {DEVELOPMENT_TIERS[own.development_level].name}!",
            LogKind.DEVELOPMENT,
        )
        self._commit()
        return True

    def mortgage_property(self, player_id: str, space_id: int) -> bool:
        player, space, own = self._owned_space(player_id, space_id)
        if player is None or own.mortgaged or own.development_level > 0:
            return False
        value = math.floor(space.price * self.config.mortgage_rate)
        own.mortgaged = True
        player.money += value
        self._log(f"{player.name} mortgages {space.name} for ${value}.")
        self._commit()
        return True

    def unmortgage_property(self, player_id: str, space_id: int) -> bool:
        player, space, own = self._owned_space(player_id, space_id)
        if player is None or not own.mortgaged:
            return False
        cost = self.unmortgage_cost(space_id)
        if player.money < cost:
            return False
        player.money -= cost
        own.mortgaged = False
        self._log(f"{player.name} unmortgages {space.name} for ${cost}.")
        self._commit()
        return True

    def sell_development(self, player_id: str, space_id: int) -> bool:
        player, space, own = self._owned_country(player_id, space_id)
        if player is None or own.development_level <= 0:
            return False
        refund = self.development_refund(space.price, own.development_level)
        own.development_level -= 1
        player.money += refund
        self._log(f"{player.name} sells development on {space.name} for ${refund}.")
        self._animate(AnimationType.DEVELOP, {"space_id": space.space_id, "level": own.development_level})
        self._commit()
        return True

    def sell_property(self, player_id: str, space_id: int) -> bool:
        """Liquidate a holding back to the bank, including its developments."""
        player, space, own = self._owned_space(player_id, space_id)
        if player is None:
            return False
        rate = self.config.mortgaged_liquidation_rate if own.mortgaged else self.config.liquidation_rate
        value = math.floor(space.price * rate)
        for level in range(1, own.development_level + 1):
            value += self.development_refund(space.price, level)

        own.release()
        player.properties.remove(space_id)
        player.money += value
        self._log(f"{player.name} sells {space.name} to the bank for ${value}.")
        self._commit()
        return True

    def _owned_space(self, player_id: Optional[str], space_id: int):
        player = self.state.get_player(player_id)
        space = self.state.space(space_id)
        own = self.state.ownership.get(space_id) if space is not None else None
        if self.state.game_over or player is None or player.bankrupt or own is None or own.owner_id != player_id:
            return None, None, None
        return player, space, own

    def _owned_country(self, player_id: Optional[str], space_id: int):
        player, space, own = self._owned_space(player_id, space_id)
        if not isinstance(space, CountrySpace):
            return None, None, None
        return player, space, own

    def _raise_level(self, player: Player, space: CountrySpace, own) -> None:
        own.development_level += 1
        player.development_count += 1
        player.add_influence(self.config.development_influence * own.development_level)
        self._animate(AnimationType.DEVELOP, {"space_id": space.space_id, "level": own.development_level})

    # ---- Trading ----

    def propose_trade(
        self,
        from_id: str,
        to_id: str,
        give_money: int = 0,
        get_money: int = 0,
        give_properties: Sequence[int] = (),
        get_properties: Sequence[int] = (),
    ) -> Optional[TradeOffer]:
        state = self.state
        proposer = state.get_player(from_id)
        partner = state.get_player(to_id)
        if state.game_over or proposer is None or partner is None or from_id == to_id:
            return None
        if proposer.bankrupt or partner.bankrupt:
            return None
        if give_money < 0 or get_money < 0:
            return None

        give = list(give_properties)
        get = list(get_properties)
        if len(set(give)) != len(give) or len(set(get)) != len(get) or set(give) & set(get):
            return None
        if not all(state.owner_of(sid) == from_id for sid in give):
            return None
        if not all(state.owner_of(sid) == to_id for sid in get):
            return None

        terms = []
        for sid in give + get:
            own = state.ownership[sid]
            terms.append(PropertyTerms(sid, own.owner_id, own.development_level, own.mortgaged))
        trade = TradeOffer(
            id=uuid.uuid4().hex[:9],
            from_id=from_id,
            to_id=to_id,
            give_money=give_money,
            get_money=get_money,
            give_properties=give,
            get_properties=get,
            terms=terms,
            proposed_turn=state.turn_number,
        )
        if trade.is_empty():
            return None

        state.trade_offers.append(trade)
        self._log(f"{proposer.name} proposes a trade to {partner.name}.", LogKind.TRADE)
        self._commit()
        return trade

    def _trade_problem(self, trade: TradeOffer) -> Optional[str]:
        state = self.state
        proposer = state.get_player(trade.from_id)
        partner = state.get_player(trade.to_id)
        if proposer is None or partner is None or proposer.bankrupt or partner.bankrupt:
            return "a party is no longer in the game"
        if proposer.money < trade.give_money or partner.money < trade.get_money:
            return "insufficient funds"
        if trade.overlapping_properties():
            return "a property is listed on both sides"
        for terms in trade.terms:
            own = state.ownership.get(terms.space_id)
            if (
                own is None
                or own.owner_id != terms.owner_id
                or own.development_level != terms.development_level
                or own.mortgaged != terms.mortgaged
            ):
                return "ownership has changed"
        return None

    def accept_trade(self, trade_id: str, player_id: str) -> bool:
        """
        Execute a pending trade for its recipient.

        Re-validated against live state; a trade that no longer holds is
        marked rejected and nothing is transferred.
        """
        state = self.state
        trade = state.get_trade(trade_id)
        if state.game_over or trade is None or not trade.is_pending() or trade.to_id != player_id:
            return False

        problem = self._trade_problem(trade)
        if problem is not None:
            trade.status = TradeStatus.REJECTED
            self._log(f"Trade could not be completed: {problem}.", LogKind.TRADE)
            self._emit_state()
            return False

        proposer = state.get_player(trade.from_id)
        partner = state.get_player(trade.to_id)
        proposer.money += trade.get_money - trade.give_money
        partner.money += trade.give_money - trade.get_money
        for sid in trade.give_properties:
            self._transfer(sid, proposer, partner)
        for sid in trade.get_properties:
            self._transfer(sid, partner, proposer)

        trade.status = TradeStatus.ACCEPTED
        self._log(f"Trade accepted between {proposer.name} and {partner.name}!", LogKind.TRADE)
        self._animate(AnimationType.TRADE, {"trade_id": trade.id, "from_id": trade.from_id, "to_id": trade.to_id})
        self._commit()
        return True

    def reject_trade(self, trade_id: str, player_id: str) -> bool:
        trade = self.state.get_trade(trade_id)
        if self.state.game_over or trade is None or not trade.is_pending() or trade.to_id != player_id:
            return False
        trade.status = TradeStatus.REJECTED
        self._log("Trade rejected.", LogKind.TRADE)
        self._commit()
        return True

    def cancel_trade(self, trade_id: str, player_id: str) -> bool:
        trade = self.state.get_trade(trade_id)
        if self.state.game_over or trade is None or not trade.is_pending() or trade.from_id != player_id:
            return False
        trade.status = TradeStatus.CANCELLED
        self._log("Trade cancelled.", LogKind.TRADE)
        self._commit()
        return True

    def _transfer(self, space_id: int, giver: Player, receiver: Player) -> None:
        self.state.ownership[space_id].owner_id = receiver.id
        giver.properties.remove(space_id)
        receiver.properties.append(space_id)

    # ---- Influence ----

    def use_influence_action(self, player_id: str, action: str, target_id: Optional[str] = None) -> bool:
        state = self.state
        player = state.get_player(player_id)
        option = influence_actions(self.config).get(action)
        if state.game_over or player is None or player.bankrupt or option is None:
            return False
        if player.influence < option.cost:
            return False

        if action == "embargo":
            target = state.get_player(target_id)
            if target is None or target.bankrupt or target.id == player.id:
                return False
            player.influence -= option.cost
            state.active_effects.append(
                ActiveEffect(EffectType.EMBARGO, state.round_number + self.config.embargo_duration - 1, target.id)
            )
            self._log(f"{player.name} imposes a Trade Embargo on {target.name}!", LogKind.INFLUENCE)
        elif action == "summit":
            player.influence -= option.cost
            for p in state.active_players():
                p.money += self.config.summit_payout
            self._log(
                f"{player.name} calls a Summit Meeting! All players receive ${self.config.summit_payout}.",
                LogKind.INFLUENCE,
            )
        else:
            player.influence -= option.cost
            player.has_free_upgrade = True
            self._log(f"{player.name} uses influence for a Development Grant!", LogKind.INFLUENCE)

        self._commit()
        return True

    # ---- Movement and landing ----

    def _move(self, player: Player, steps: int) -> None:
        old = player.position
        new = (old + steps) % self.state.total_spaces
        if steps > 0 and new < old:
            self._pay_salary(player)
        player.position = new
        self.state.phase = Phase.MOVING
        self._animate(AnimationType.MOVE, {"player_id": player.id, "from": old, "to": new})
        self._land(player)

    def _move_to(self, player: Player, target: int, collect_go: bool = True) -> None:
        old = player.position
        if collect_go and target < old:
            self._pay_salary(player)
        player.position = target
        self.state.phase = Phase.MOVING
        self._animate(AnimationType.MOVE, {"player_id": player.id, "from": old, "to": target})
        self._land(player)

    def _pay_salary(self, player: Player) -> None:
        salary = self.calculate_go_salary(player)
        player.money += salary
        player.add_influence(self.config.go_influence)
        self._log(
            f"{player.name} passes Global Summit! Collects ${salary} and {self.config.go_influence} influence.",
            LogKind.SUCCESS,
        )

    def _land(self, player: Player) -> None:
        state = self.state
        space = state.space(player.position)
        state.phase = Phase.LANDED
        self._log(f"{player.name} lands on {space.name}.")

        if isinstance(space, OwnableSpace):
            own = state.ownership[space.space_id]
            if own.owner_id is None:
                state.phase = Phase.ACTION
            elif own.owner_id != player.id and not own.mortgaged:
                self._pay_rent(player, space)
                state.phase = Phase.END_TURN
            else:
                state.phase = Phase.END_TURN
        elif isinstance(space, CardSpace):
            self._draw_card(player, space.deck)
        elif isinstance(space, TaxSpace):
            player.money -= space.amount
            self._log(f"{player.name} pays {space.name}: ${space.amount}.", LogKind.WARNING)
            state.phase = Phase.END_TURN
        elif isinstance(space, SpecialSpace):
            self._land_on_special(player, space)
        else:
            state.phase = Phase.END_TURN

        if state.phase is not Phase.ACTION:
            state.pending_purchase_discount = None

    def _land_on_special(self, player: Player, space: SpecialSpace) -> None:
        if space.kind is SpecialKind.SANCTIONS:
            self._log(f"{player.name} is just visiting Trade Sanctions.")
        elif space.kind is SpecialKind.FREE_TRADE:
            player.money += self.config.free_trade_bonus
            player.add_influence(self.config.free_trade_influence)
            self._log(
                f"{player.name} enters the Free Trade Zone! Collects ${self.config.free_trade_bonus} "
                f"and {self.config.free_trade_influence} influence.",
                LogKind.SUCCESS,
            )
        elif space.kind is SpecialKind.INCIDENT:
            self._send_to_sanctions(player)
            self._log(f"{player.name} causes an International Incident! Sent to Trade Sanctions!", LogKind.WARNING)
        self.state.phase = Phase.END_TURN

    def _pay_rent(self, player: Player, space) -> None:
        state = self.state
        rent = self.calculate_rent(space.space_id)
        owner = state.get_player(state.owner_of(space.space_id))
        if rent <= 0 or owner is None or owner.bankrupt:
            return

        player.money -= rent
        owner.money += rent
        owner.add_influence(rent // self.config.rent_influence_divisor)
        if state.has_complete_alliance(owner.id, "BRICS"):
            owner.add_influence(rent // self.config.brics_influence_divisor)
        owner.total_rent_collected += rent
        player.total_rent_paid += rent
        self._log(f"{player.name} pays ${rent} rent to {owner.name} for {space.name}.", LogKind.RENT)
        self._animate(
            AnimationType.PAYMENT,
            {"from": player.id, "to": owner.id, "amount": rent, "space_id": space.space_id},
        )

    def _send_to_sanctions(self, player: Player) -> None:
        player.position = self.state.board.sanctions_position
        player.in_sanctions = True
        player.sanctions_turns = 0
        player.doubles_count = 0
        self._animate(AnimationType.SANCTIONS, {"player_id": player.id})

    def _release(self, player: Player) -> None:
        player.in_sanctions = False
        player.sanctions_turns = 0

    # ---- Cards ----

    def _draw_card(self, player: Player, deck_type: DeckType) -> None:
        state = self.state
        deck = state.decks[deck_type]
        card = deck.draw(self.rng)
        if card is None:
            state.phase = Phase.END_TURN
            return

        private = deck_type is DeckType.DIPLOMATIC_CABLE
        state.current_card = card
        if private:
            self._log(f"{player.name} draws a Diplomatic Cable.")
        else:
            self._log(f"{player.name} draws: {card.title} - {card.text}")
        self._animate(
            AnimationType.CARD,
            {"player_id": player.id, "deck_type": deck_type.value, "card": card.model_dump()},
            private_to=player.id if private else None,
        )

        moved = self._apply_card(player, card)
        if not card.keepable:
            deck.put_back(card)
        state.current_card = None
        # a card that moved the player keeps the phase its landing chose
        if not moved:
            state.phase = Phase.END_TURN

    def _apply_card(self, player: Player, card: CardBase) -> bool:
        """Apply a card effect; returns True when it moved the player onto a new landing."""
        state = self.state
        board = state.board
        owned = [(board.spaces[sid], state.ownership[sid]) for sid in player.properties]
        countries = [(s, own) for s, own in owned if isinstance(s, CountrySpace)]

        if isinstance(card, CollectCard):
            player.money += card.amount
            self._log(f"{player.name} collects ${card.amount}.", LogKind.SUCCESS)
        elif isinstance(card, PayCard):
            player.money -= card.amount
            self._log(f"{player.name} pays ${card.amount}.", LogKind.WARNING)
        elif isinstance(card, AdvanceGoCard):
            self._move_to(player, 0)
            return True
        elif isinstance(card, GetOutFreeCard):
            player.has_get_out_free = True
            self._log(f"{player.name} receives Diplomatic Immunity!", LogKind.SUCCESS)
        elif isinstance(card, GoSanctionsCard):
            self._send_to_sanctions(player)
            self._log(f"{player.name} is sent to Trade Sanctions!", LogKind.WARNING)
        elif isinstance(card, GainInfluenceCard):
            player.add_influence(card.amount)
            self._log(f"{player.name} gains {card.amount} influence!", LogKind.SUCCESS)
        elif isinstance(card, AllGainInfluenceCard):
            for p in state.active_players():
                p.add_influence(card.amount)
            self._log(f"All players gain {card.amount} influence!", LogKind.SUCCESS)
        elif isinstance(card, PayAllPlayersCard):
            for p in state.active_players():
                if p.id != player.id:
                    player.money -= card.amount
                    p.money += card.amount
            self._log(f"{player.name} pays ${card.amount} to every player.", LogKind.WARNING)
        elif isinstance(card, CollectFromAllCard):
            for p in state.active_players():
                if p.id != player.id:
                    p.money -= card.amount
                    player.money += card.amount
            self._log(f"{player.name} collects ${card.amount} from every player.", LogKind.SUCCESS)
        elif isinstance(card, PerPropertyCollectCard):
            total = len(player.properties) * card.amount
            player.money += total
            self._log(f"{player.name} collects ${total} (${card.amount} x {len(player.properties)} properties).", LogKind.SUCCESS)
        elif isinstance(card, PerCountryBonusCard):
            total = len(countries) * card.amount
            player.money += total
            self._log(f"{player.name} collects ${total}.", LogKind.SUCCESS)
        elif isinstance(card, PerDevelopmentBonusCard):
            total = sum(own.development_level for _, own in countries) * card.amount
            player.money += total
            self._log(f"{player.name} collects ${total} from developments.", LogKind.SUCCESS)
        elif isinstance(card, OilBonusCard):
            if any(s.resource is Resource.OIL for s, _ in countries):
                player.money += card.amount
                self._log(f"{player.name} collects ${card.amount} from the oil surge!", LogKind.SUCCESS)
        elif isinstance(card, AgricultureBonusCard):
            total = sum(card.amount for s, _ in countries if s.resource is Resource.AGRICULTURE)
            player.money += total
            self._log(f"{player.name} collects ${total} from the harvest.", LogKind.SUCCESS)
        elif isinstance(card, TechHubBonusCard):
            total = sum(card.amount for _, own in countries if own.development_level >= TECH_HUB_LEVEL)
            player.money += total
            self._log(f"{player.name} collects ${total} from Tech Hubs.", LogKind.SUCCESS)
        elif isinstance(card, TourismPenaltyCard):
            total = sum(
                card.amount * own.development_level for s, own in countries if s.resource is Resource.TOURISM
            )
            player.money -= total
            self._log(f"{player.name} pays ${total} in tourism losses.", LogKind.WARNING)
        elif isinstance(card, TradeWarTaxCard):
            alliances = {s.alliance for s, _ in countries}
            tax = len(alliances) * card.amount
            player.money -= tax
            self._log(f"{player.name} pays ${tax} in trade war tariffs ({len(alliances)} alliances).", LogKind.WARNING)
        elif isinstance(card, LosePercentageCard):
            loss = 0
            if player.money > 0:
                loss = (player.money * card.percent // 100) // 100 * 100
            player.money -= loss
            self._log(f"{player.name} loses ${loss} in the currency crisis!", LogKind.WARNING)
        elif isinstance(card, FreeAllSanctionedCard):
            for p in state.players:
                if p.in_sanctions and not p.bankrupt:
                    self._release(p)
                    self._log(f"{p.name} freed from Trade Sanctions!", LogKind.SUCCESS)
        elif isinstance(card, RentModifierCard):
            last_round = state.round_number + card.duration - 1
            state.active_effects.append(ActiveEffect(EffectType(card.effect), last_round))
            self._log(f"{card.title} is in effect until the end of round {last_round}.")
        elif isinstance(card, LoseDevelopmentCard):
            developed = [(s, own) for s, own in countries if own.development_level > 0]
            if developed:
                space, own = max(developed, key=lambda pair: pair[0].price)
                own.development_level -= 1
                self._log(f"{space.name} loses a development level!", LogKind.WARNING)
                self._animate(AnimationType.DEVELOP, {"space_id": space.space_id, "level": own.development_level})
        elif isinstance(card, FreeUpgradeCard):
            player.has_free_upgrade = True
            self._log(f"{player.name} earns a free development upgrade!", LogKind.SUCCESS)
        elif isinstance(card, AdvanceToCard):
            target = board.position_of(card.space_name)
            if target is not None:
                self._move_to(player, target)
                return True
        elif isinstance(card, AdvanceTourismCard):
            target = board.find_next(
                player.position, lambda s: isinstance(s, CountrySpace) and s.resource is Resource.TOURISM
            )
            if target is not None:
                state.pending_purchase_discount = card.discount
                self._move_to(player, target)
                return True
        elif isinstance(card, AdvanceUnownedCard):
            target = board.find_next(
                player.position, lambda s: isinstance(s, CountrySpace) and state.owner_of(s.space_id) is None
            )
            if target is not None:
                self._move_to(player, target)
                return True
        elif isinstance(card, ArmsDealCard):
            player.money += card.collect_amount
            player.add_influence(-card.influence_loss)
            self._log(
                f"{player.name} collects ${card.collect_amount} but loses {card.influence_loss} influence."
            )
        elif isinstance(card, CulturalExchangeCard):
            player.money += card.amount
            player.add_influence(card.influence)
            self._log(f"{player.name} collects ${card.amount} and {card.influence} influence.", LogKind.SUCCESS)
        else:
            raise TypeError(f"Unhandled card effect: {card.effect}")
        return False

    # ---- Insolvency, bankruptcy, victory ----

    def _settle_insolvencies(self) -> None:
        """
        Resolve every negative balance that cannot stand.

        A player without liquidatable assets goes bankrupt. The current
        player keeps a debt they can still liquidate (end_turn stays
        blocked); anyone else is liquidated automatically.
        """
        current = self.state.current_player()
        for player in self.state.players:
            if not self.is_insolvent(player):
                continue
            if not self.has_liquidatable_assets(player):
                self._declare_bankruptcy(player)
            elif player is not current:
                self._auto_liquidate(player)

    def _auto_liquidate(self, player: Player) -> None:
        state = self.state
        while player.money < 0:
            developed = [
                sid for sid in player.properties if state.ownership[sid].development_level > 0
            ]
            if developed:
                sid = max(developed, key=lambda s: state.space(s).price)
                own = state.ownership[sid]
                player.money += self.development_refund(state.space(sid).price, own.development_level)
                own.development_level -= 1
                continue
            unmortgaged = [sid for sid in player.properties if not state.ownership[sid].mortgaged]
            if unmortgaged:
                sid = unmortgaged[0]
                state.ownership[sid].mortgaged = True
                player.money += math.floor(state.space(sid).price * self.config.mortgage_rate)
                continue
            break
        self._log(f"{player.name}'s assets are liquidated to cover debts.", LogKind.WARNING)
        if player.money < 0:
            self._declare_bankruptcy(player)

    def _declare_bankruptcy(self, player: Player) -> None:
        state = self.state
        player.bankrupt = True
        for sid in player.properties:
            state.ownership[sid].release()
        player.properties = []
        player.in_sanctions = False
        player.has_free_upgrade = False
        if player.has_get_out_free:
            player.has_get_out_free = False
            state.decks[DeckType.DIPLOMATIC_CABLE].put_back(immunity_card())
        for trade in state.trade_offers:
            if trade.is_pending() and trade.involves(player.id):
                trade.status = TradeStatus.CANCELLED

        logger.info(f"Game {state.id}: player {player.id} ({player.name}) is bankrupt")
        self._log(f"{player.name} has gone BANKRUPT!", LogKind.BANKRUPT)
        self._animate(AnimationType.BANKRUPT, {"player_id": player.id})

    def _check_win(self) -> None:
        state = self.state
        if state.game_over:
            return
        active = state.active_players()
        for player in active:
            if player.influence >= self.config.influence_to_win:
                self._declare_winner(player, "influence")
                self._log(f"{player.name} wins with {player.influence} Influence Points!", LogKind.VICTORY)
                return
        if len(active) == 1:
            self._declare_winner(active[0], "last_standing")
            self._log(f"{active[0].name} wins as the last player standing!", LogKind.VICTORY)
        elif not active:
            self._end_game()

    def _declare_winner(self, player: Player, reason: str) -> None:
        self.state.winner = player.id
        self.state.game_over = True
        logger.info(f"Game {self.state.id} won by {player.id} ({reason})")
        self._animate(AnimationType.VICTORY, {"player_id": player.id, "type": reason})

    def _end_game(self) -> None:
        state = self.state
        active = state.active_players()
        if active:
            richest = max(active, key=self.total_wealth)
            self._declare_winner(richest, "wealth")
            self._log(f"{richest.name} wins as the wealthiest nation!", LogKind.VICTORY)
        else:
            state.game_over = True

    # ---- Turn order ----

    def _next_turn(self) -> None:
        state = self.state
        if len(state.active_players()) <= 1:
            self._end_game()
            return

        outgoing = state.current_player()
        outgoing.doubles_count = 0
        count = len(state.players)
        index = state.current_player_index
        for _ in range(count):
            index = (index + 1) % count
            if not state.players[index].bankrupt:
                break

        if index <= state.current_player_index:
            self._complete_round()

        state.current_player_index = index
        state.turn_number += 1
        state.phase = Phase.PRE_ROLL
        state.last_dice = None
        state.current_card = None
        state.pending_purchase_discount = None
        self._log(f"It is {state.players[index].name}'s turn.")

    def _complete_round(self) -> None:
        state = self.state
        state.round_number += 1
        state.active_effects = [e for e in state.active_effects if not e.is_expired(state.round_number)]

        for player in state.active_players():
            if state.has_complete_alliance(player.id, "OIL_NATIONS"):
                player.money += self.config.oil_nations_round_income
                self._log(
                    f"{player.name} collects ${self.config.oil_nations_round_income} from Oil Royalties!",
                    LogKind.SUCCESS,
                )
            if state.has_complete_alliance(player.id, "EASTERN"):
                player.add_influence(self.config.eastern_round_influence)
            if state.has_complete_alliance(player.id, "AFRICAN_RISING"):
                player.money += self.config.african_rising_round_income
                self._log(
                    f"{player.name} collects ${self.config.african_rising_round_income} from Tourism Income!",
                    LogKind.SUCCESS,
                )
            if state.has_complete_alliance(player.id, "AMERICAS"):
                player.has_free_upgrade = True
