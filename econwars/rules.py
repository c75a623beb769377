"""
Player actions as a closed union of typed messages, with dispatch into
the engine and a listing of what a player can do right now.
"""

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from econwars.config import influence_actions
from econwars.engine import GameEngine
from econwars.game import Phase
from econwars.spaces import OwnableSpace


class ActionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class RollDice(ActionBase):
    action_type: Literal["roll-dice"]


class PayBail(ActionBase):
    action_type: Literal["pay-bail"]


class UseImmunity(ActionBase):
    action_type: Literal["use-immunity"]


class BuyProperty(ActionBase):
    action_type: Literal["buy-property"]


class DeclinePurchase(ActionBase):
    action_type: Literal["decline-purchase"]


class EndTurn(ActionBase):
    action_type: Literal["end-turn"]


class InfluenceAction(ActionBase):
    action_type: Literal["influence-action"]
    action: str
    target_id: Optional[str] = Field(default=None, alias="targetId")


class TradeTerms(ActionBase):
    give_money: int = Field(default=0, ge=0, alias="giveMoney")
    get_money: int = Field(default=0, ge=0, alias="getMoney")
    give_properties: List[int] = Field(default_factory=list, alias="giveProperties")
    get_properties: List[int] = Field(default_factory=list, alias="getProperties")


class ProposeTrade(ActionBase):
    action_type: Literal["propose-trade"]
    partner_id: str = Field(alias="partnerId")
    offer: TradeTerms = Field(default_factory=TradeTerms)


class AcceptTrade(ActionBase):
    action_type: Literal["accept-trade"]
    trade_id: str = Field(alias="tradeId")


class RejectTrade(ActionBase):
    action_type: Literal["reject-trade"]
    trade_id: str = Field(alias="tradeId")


class CancelTrade(ActionBase):
    action_type: Literal["cancel-trade"]
    trade_id: str = Field(alias="tradeId")


class DevelopProperty(ActionBase):
    action_type: Literal["develop-property"]
    space_id: int = Field(alias="spaceId")


class FreeUpgrade(ActionBase):
    action_type: Literal["free-upgrade"]
    space_id: int = Field(alias="spaceId")


class MortgageProperty(ActionBase):
    action_type: Literal["mortgage-property"]
    space_id: int = Field(alias="spaceId")


class UnmortgageProperty(ActionBase):
    action_type: Literal["unmortgage-property"]
    space_id: int = Field(alias="spaceId")


class SellDevelopment(ActionBase):
    action_type: Literal["sell-development"]
    space_id: int = Field(alias="spaceId")


class SellProperty(ActionBase):
    action_type: Literal["sell-property"]
    space_id: int = Field(alias="spaceId")


Action = Annotated[
    Union[
        RollDice,
        PayBail,
        UseImmunity,
        BuyProperty,
        DeclinePurchase,
        EndTurn,
        InfluenceAction,
        ProposeTrade,
        AcceptTrade,
        RejectTrade,
        CancelTrade,
        DevelopProperty,
        FreeUpgrade,
        MortgageProperty,
        UnmortgageProperty,
        SellDevelopment,
        SellProperty,
    ],
    Field(discriminator="action_type"),
]

action_adapter: TypeAdapter = TypeAdapter(Action)

# Only the current player may take these; anyone else is silently ignored.
TURN_BOUND_ACTIONS = (RollDice, PayBail, UseImmunity, BuyProperty, DeclinePurchase, EndTurn, InfluenceAction)


def parse_action(payload: Any) -> Optional[ActionBase]:
    """
    Validate a client action message.

    Accepts `actionType` as well as `action_type`; any client claim about
    the acting player is ignored. Returns None for malformed input.
    """
    if not isinstance(payload, dict):
        return None
    data = dict(payload)
    if "action_type" not in data and "actionType" in data:
        data["action_type"] = data["actionType"]
    data.pop("fromPlayerId", None)
    data.pop("from_player_id", None)
    try:
        return action_adapter.validate_python(data)
    except ValidationError:
        return None


def apply_action(engine: GameEngine, player_id: str, action: ActionBase) -> bool:
    """
    Dispatch an action on behalf of an authenticated player.

    Returns True if the engine accepted it.
    """
    if isinstance(action, TURN_BOUND_ACTIONS) and not engine.is_current(player_id):
        return False

    if isinstance(action, RollDice):
        return engine.roll_dice(player_id) is not None
    if isinstance(action, PayBail):
        return engine.pay_bail(player_id)
    if isinstance(action, UseImmunity):
        return engine.use_immunity(player_id)
    if isinstance(action, BuyProperty):
        return engine.buy_property(player_id)
    if isinstance(action, DeclinePurchase):
        return engine.decline_purchase(player_id)
    if isinstance(action, EndTurn):
        return engine.end_turn(player_id)
    if isinstance(action, InfluenceAction):
        return engine.use_influence_action(player_id, action.action, action.target_id)
    if isinstance(action, ProposeTrade):
        offer = action.offer
        trade = engine.propose_trade(
            player_id,
            action.partner_id,
            give_money=offer.give_money,
            get_money=offer.get_money,
            give_properties=offer.give_properties,
            get_properties=offer.get_properties,
        )
        return trade is not None
    if isinstance(action, AcceptTrade):
        return engine.accept_trade(action.trade_id, player_id)
    if isinstance(action, RejectTrade):
        return engine.reject_trade(action.trade_id, player_id)
    if isinstance(action, CancelTrade):
        return engine.cancel_trade(action.trade_id, player_id)
    if isinstance(action, DevelopProperty):
        return engine.develop_property(player_id, action.space_id)
    if isinstance(action, FreeUpgrade):
        return engine.free_upgrade_property(player_id, action.space_id)
    if isinstance(action, MortgageProperty):
        return engine.mortgage_property(player_id, action.space_id)
    if isinstance(action, UnmortgageProperty):
        return engine.unmortgage_property(player_id, action.space_id)
    if isinstance(action, SellDevelopment):
        return engine.sell_development(player_id, action.space_id)
    if isinstance(action, SellProperty):
        return engine.sell_property(player_id, action.space_id)
    raise TypeError(f"Unhandled action: {type(action).__name__}")


def get_legal_actions(engine: GameEngine, player_id: str) -> List[str]:
    """Action types currently worth offering to a player."""
    state = engine.state
    player = state.get_player(player_id)
    if state.game_over or player is None or player.bankrupt:
        return []

    actions: List[str] = []
    if engine.is_current(player_id):
        if state.phase is Phase.PRE_ROLL:
            actions.append("roll-dice")
            if player.in_sanctions and player.money >= engine.config.sanctions_bail:
                actions.append("pay-bail")
            if player.in_sanctions and player.has_get_out_free:
                actions.append("use-immunity")
        elif state.phase is Phase.ACTION:
            space = state.space(player.position)
            if isinstance(space, OwnableSpace):
                price = space.price
                if state.pending_purchase_discount:
                    price = int(price * (1 - state.pending_purchase_discount))
                if player.money >= price:
                    actions.append("buy-property")
            actions.append("decline-purchase")
        elif state.phase is Phase.END_TURN:
            if not (engine.is_insolvent(player) and engine.has_liquidatable_assets(player)):
                actions.append("end-turn")
        cheapest = min(a.cost for a in influence_actions(engine.config).values())
        if player.influence >= cheapest:
            actions.append("influence-action")

    if any(p.id != player.id for p in state.active_players()):
        actions.append("propose-trade")
    pending = [t for t in state.trade_offers if t.is_pending()]
    if any(t.to_id == player.id for t in pending):
        actions.extend(["accept-trade", "reject-trade"])
    if any(t.from_id == player.id for t in pending):
        actions.append("cancel-trade")

    holdings = [(sid, state.ownership[sid]) for sid in player.properties]
    if any(
        not own.mortgaged
        and state.has_complete_alliance(player.id, getattr(state.space(sid), "alliance", ""))
        and (engine.development_cost(sid) or float("inf")) <= player.money
        for sid, own in holdings
    ):
        actions.append("develop-property")
    if player.has_free_upgrade and any(
        not own.mortgaged
        and state.has_complete_alliance(player.id, getattr(state.space(sid), "alliance", ""))
        and engine.development_cost(sid) is not None
        for sid, own in holdings
    ):
        actions.append("free-upgrade")
    if any(not own.mortgaged and own.development_level == 0 for _, own in holdings):
        actions.append("mortgage-property")
    if any(own.mortgaged and engine.unmortgage_cost(sid) <= player.money for sid, own in holdings):
        actions.append("unmortgage-property")
    if any(own.development_level > 0 for _, own in holdings):
        actions.append("sell-development")
    if holdings:
        actions.append("sell-property")
    return actions
