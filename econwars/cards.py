"""
Global News and Diplomatic Cable cards.

Each effect family is its own pydantic model carrying only the fields it
needs; `Card` is the closed union of all of them, discriminated on `effect`.
"""

import random
from dataclasses import dataclass, field
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from econwars.spaces import DeckType


class CardBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    text: str
    keepable: bool = False


class CollectCard(CardBase):
    effect: Literal["collect", "collect_bank"]
    amount: int


class PayCard(CardBase):
    effect: Literal["pay", "pay_bank"]
    amount: int


class AdvanceGoCard(CardBase):
    effect: Literal["advance_go"]


class GetOutFreeCard(CardBase):
    effect: Literal["get_out_free"]
    keepable: bool = True


class GoSanctionsCard(CardBase):
    effect: Literal["go_sanctions"]


class GainInfluenceCard(CardBase):
    effect: Literal["gain_influence"]
    amount: int


class AllGainInfluenceCard(CardBase):
    effect: Literal["all_gain_influence"]
    amount: int


class PayAllPlayersCard(CardBase):
    effect: Literal["pay_all_players"]
    amount: int


class CollectFromAllCard(CardBase):
    effect: Literal["collect_from_all"]
    amount: int


class PerPropertyCollectCard(CardBase):
    effect: Literal["per_property_collect"]
    amount: int


class PerCountryBonusCard(CardBase):
    effect: Literal["per_country_bonus"]
    amount: int


class PerDevelopmentBonusCard(CardBase):
    effect: Literal["per_development_bonus"]
    amount: int


class OilBonusCard(CardBase):
    effect: Literal["oil_bonus"]
    amount: int


class AgricultureBonusCard(CardBase):
    effect: Literal["agriculture_bonus"]
    amount: int


class TechHubBonusCard(CardBase):
    effect: Literal["tech_hub_bonus"]
    amount: int


class TourismPenaltyCard(CardBase):
    effect: Literal["tourism_penalty"]
    amount: int


class TradeWarTaxCard(CardBase):
    effect: Literal["trade_war_tax"]
    amount: int


class LosePercentageCard(CardBase):
    effect: Literal["lose_percentage"]
    percent: int


class FreeAllSanctionedCard(CardBase):
    effect: Literal["free_all_sanctioned"]


class RentModifierCard(CardBase):
    effect: Literal["half_rent", "tech_double_rent", "tech_half_rent"]
    duration: int = 1


class LoseDevelopmentCard(CardBase):
    effect: Literal["lose_development"]


class FreeUpgradeCard(CardBase):
    effect: Literal["free_upgrade"]


class AdvanceToCard(CardBase):
    effect: Literal["advance_to"]
    space_name: str


class AdvanceTourismCard(CardBase):
    effect: Literal["advance_tourism"]
    discount: float = 0.5


class AdvanceUnownedCard(CardBase):
    effect: Literal["advance_unowned"]


class ArmsDealCard(CardBase):
    effect: Literal["arms_deal"]
    collect_amount: int
    influence_loss: int


class CulturalExchangeCard(CardBase):
    effect: Literal["cultural_exchange"]
    amount: int
    influence: int


Card = Annotated[
    Union[
        CollectCard,
        PayCard,
        AdvanceGoCard,
        GetOutFreeCard,
        GoSanctionsCard,
        GainInfluenceCard,
        AllGainInfluenceCard,
        PayAllPlayersCard,
        CollectFromAllCard,
        PerPropertyCollectCard,
        PerCountryBonusCard,
        PerDevelopmentBonusCard,
        OilBonusCard,
        AgricultureBonusCard,
        TechHubBonusCard,
        TourismPenaltyCard,
        TradeWarTaxCard,
        LosePercentageCard,
        FreeAllSanctionedCard,
        RentModifierCard,
        LoseDevelopmentCard,
        FreeUpgradeCard,
        AdvanceToCard,
        AdvanceTourismCard,
        AdvanceUnownedCard,
        ArmsDealCard,
        CulturalExchangeCard,
    ],
    Field(discriminator="effect"),
]

card_adapter: TypeAdapter = TypeAdapter(Card)


GLOBAL_NEWS_CARDS: List[CardBase] = [
    TourismPenaltyCard(
        id="gn1",
        title="Global Pandemic",
        text="Tourism industry collapses. All tourism cities pay $100 per development level.",
        effect="tourism_penalty",
        amount=100,
    ),
    OilBonusCard(
        id="gn2",
        title="Oil Price Surge",
        text="Oil prices skyrocket! Oil city owners collect $200 from the bank.",
        effect="oil_bonus",
        amount=200,
    ),
    RentModifierCard(
        id="gn3",
        title="Tech Boom",
        text="Tech cities earn double rent this round.",
        effect="tech_double_rent",
        duration=1,
    ),
    PerCountryBonusCard(
        id="gn4",
        title="Foreign Aid Donation",
        text="A donor rewards your holdings. Collect $50 for every city you own.",
        effect="per_country_bonus",
        amount=50,
    ),
    TradeWarTaxCard(
        id="gn5",
        title="Trade War",
        text="Tariffs everywhere! Pay $100 per alliance you own properties in.",
        effect="trade_war_tax",
        amount=100,
    ),
    AdvanceTourismCard(
        id="gn6",
        title="World Cup Hosting",
        text="Advance to the nearest tourism city. If unowned, you may buy it at half price.",
        effect="advance_tourism",
        discount=0.5,
    ),
    PayCard(
        id="gn7",
        title="Refugee Crisis",
        text="Humanitarian costs. Pay $300 to the bank.",
        effect="pay_bank",
        amount=300,
    ),
    TechHubBonusCard(
        id="gn8",
        title="Space Race",
        text="Technological advancement! Collect $100 for every Tech Hub or better you own.",
        effect="tech_hub_bonus",
        amount=100,
    ),
    LosePercentageCard(
        id="gn9",
        title="Currency Crisis",
        text="Markets crash! Lose 10% of your cash (rounded down to $100).",
        effect="lose_percentage",
        percent=10,
    ),
    FreeAllSanctionedCard(
        id="gn10",
        title="Peace Treaty",
        text="Diplomatic breakthrough! All players in Trade Sanctions are freed.",
        effect="free_all_sanctioned",
    ),
    AgricultureBonusCard(
        id="gn11",
        title="Agricultural Revolution",
        text="Bumper harvest! Collect $150 for every agriculture city you own.",
        effect="agriculture_bonus",
        amount=150,
    ),
    PerDevelopmentBonusCard(
        id="gn12",
        title="Infrastructure Boom",
        text="Government spending! Each development you own earns $25.",
        effect="per_development_bonus",
        amount=25,
    ),
    RentModifierCard(
        id="gn13",
        title="Economic Recession",
        text="Markets downturn. Rent is halved for all properties this round.",
        effect="half_rent",
        duration=1,
    ),
    GainInfluenceCard(
        id="gn14",
        title="G20 Summit",
        text="International cooperation! Gain 100 influence points.",
        effect="gain_influence",
        amount=100,
    ),
    LoseDevelopmentCard(
        id="gn15",
        title="Earthquake",
        text="Natural disaster! Your most expensive developed property loses 1 level.",
        effect="lose_development",
    ),
    CollectCard(
        id="gn16",
        title="UN Aid Package",
        text="Humanitarian aid! Collect $200 from the bank.",
        effect="collect_bank",
        amount=200,
    ),
    RentModifierCard(
        id="gn17",
        title="Crypto Crash",
        text="Digital currencies collapse! Tech city rents halved this round.",
        effect="tech_half_rent",
        duration=1,
    ),
    AllGainInfluenceCard(
        id="gn18",
        title="Olympic Games",
        text="Sports brings unity! Every player gains 25 influence.",
        effect="all_gain_influence",
        amount=25,
    ),
]

DIPLOMATIC_CABLE_CARDS: List[CardBase] = [
    CollectCard(id="dc1", title="Foreign Investment", text="A wealthy investor backs your ventures. Collect $500.", effect="collect", amount=500),
    CollectCard(id="dc2", title="Embassy Donation", text="Your embassy receives a generous donation. Collect $200.", effect="collect", amount=200),
    AdvanceGoCard(id="dc3", title="Trade Agreement", text="Advance to Global Summit and collect salary.", effect="advance_go"),
    GetOutFreeCard(
        id="dc4",
        title="Diplomatic Immunity",
        text="Get out of Trade Sanctions free. Keep this card until used.",
        effect="get_out_free",
    ),
    PerPropertyCollectCard(id="dc5", title="Tax Haven", text="Collect $100 per property owned.", effect="per_property_collect", amount=100),
    PayAllPlayersCard(id="dc6", title="Spy Scandal", text="Intelligence leak! Pay each player $50.", effect="pay_all_players", amount=50),
    GainInfluenceCard(id="dc7", title="Summit Invitation", text="VIP invitation! Gain 75 influence points.", effect="gain_influence", amount=75),
    FreeUpgradeCard(id="dc8", title="Infrastructure Grant", text="Free development upgrade on any city you own.", effect="free_upgrade"),
    GoSanctionsCard(id="dc9", title="Border Dispute", text="Territorial tensions! Go to Trade Sanctions.", effect="go_sanctions"),
    AdvanceUnownedCard(id="dc10", title="Peace Envoy", text="Advance to the nearest unowned city; you may buy it.", effect="advance_unowned"),
    CollectCard(id="dc11", title="Aid Package", text="International aid received. Collect $300.", effect="collect", amount=300),
    PayCard(id="dc12", title="Election Scandal", text="Political crisis at home! Pay $200 in damage control.", effect="pay", amount=200),
    CollectFromAllCard(id="dc13", title="Trade Delegation", text="Successful delegation! Collect $25 from each player.", effect="collect_from_all", amount=25),
    ArmsDealCard(
        id="dc14",
        title="Arms Deal",
        text="Controversial but profitable. Collect $400 but lose 50 influence.",
        effect="arms_deal",
        collect_amount=400,
        influence_loss=50,
    ),
    CulturalExchangeCard(
        id="dc15",
        title="Cultural Exchange",
        text="Soft power initiative! Gain 50 influence and collect $100.",
        effect="cultural_exchange",
        influence=50,
        amount=100,
    ),
    PayCard(id="dc16", title="Cyber Attack", text="Your systems compromised! Pay $150 in recovery costs.", effect="pay", amount=150),
    AdvanceToCard(id="dc17", title="Advance to Mumbai", text="Special economic summit in Mumbai! Advance to Mumbai.", effect="advance_to", space_name="Mumbai"),
    CollectCard(id="dc18", title="Heritage Fund", text="Cultural heritage grant! Collect $250.", effect="collect", amount=250),
]


def immunity_card() -> CardBase:
    """The keepable card returned to the discard pile once used."""
    return next(c for c in DIPLOMATIC_CABLE_CARDS if c.effect == "get_out_free")


@dataclass
class Deck:
    """A draw pile plus its discard pile."""

    deck_type: DeckType
    cards: List[CardBase] = field(default_factory=list)
    discard: List[CardBase] = field(default_factory=list)

    def draw(self, rng: random.Random) -> Optional[CardBase]:
        """
        Pop the top card, reshuffling the discard pile back in when empty.

        Returns None only when both piles are empty.
        """
        if not self.cards:
            self.cards = self.discard
            self.discard = []
            rng.shuffle(self.cards)
        if not self.cards:
            return None
        return self.cards.pop()

    def put_back(self, card: CardBase) -> None:
        self.discard.append(card)

    def __len__(self) -> int:
        return len(self.cards) + len(self.discard)


def create_global_news_deck(rng: random.Random) -> Deck:
    cards = list(GLOBAL_NEWS_CARDS)
    rng.shuffle(cards)
    return Deck(DeckType.GLOBAL_NEWS, cards)


def create_diplomatic_deck(rng: random.Random) -> Deck:
    cards = list(DIPLOMATIC_CABLE_CARDS)
    rng.shuffle(cards)
    return Deck(DeckType.DIPLOMATIC_CABLE, cards)
