class BattleError(Exception):
    """Base class for errors raised while setting up or resolving a battle."""


class BattlePreconditionError(BattleError):
    """The battle is missing something the caller must supply first."""


class BattleStateError(BattlePreconditionError):
    """The battle is not in the status the requested action needs."""


class CardNotFoundError(BattleError):
    """A card referenced by a battle no longer exists."""

    def __init__(self, card_id: int, round_number: int | None = None) -> None:
        self.card_id = card_id
        self.round_number = round_number
        where = f" for round {round_number}" if round_number is not None else ""
        super().__init__(f"Card {card_id} not found{where}")
