from enum import StrEnum


class Ability(StrEnum):
    STRENGTH = "strength"
    SPEED = "speed"
    AGILITY = "agility"


ABILITIES: tuple[Ability, ...] = (Ability.STRENGTH, Ability.SPEED, Ability.AGILITY)

ANY_ABILITY = "any"
"""Sentinel ability of an any-ability tool bonus."""


class CardRarity(StrEnum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"


class ToolEffectType(StrEnum):
    STAT_BOOST = "stat_boost"
    ANY_STAT_BOOST = "any_stat_boost"
    REVEAL_CARDS = "reveal_cards"


class ToolRestriction(StrEnum):
    CHALLENGEE = "challengee"


class Side(StrEnum):
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def opponent(self) -> "Side":
        return Side.PLAYER2 if self is Side.PLAYER1 else Side.PLAYER1


class RoundWinner(StrEnum):
    PLAYER1 = "player1"
    PLAYER2 = "player2"
    DRAW = "draw"


class WinReason(StrEnum):
    POINTS = "points"
    DAMAGE = "damage"
    COIN_TOSS = "coin-toss"


class BattleStatus(StrEnum):
    WAITING_FOR_ORDER = "waiting-for-order"
    READY = "ready"
    COMPLETED = "completed"


class EventType(StrEnum):
    BATTLE_REWARD = "battle_reward"
    RATING_CHANGE = "rating_change"
    TOOL_USED = "tool_used"



class ChallengeStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"
