"""
Game-logic errors.

A GameLogicError is an expected, user-correctable condition. It carries rich
content that the chat layer shows to the user verbatim. Any other exception
reaching an adapter boundary is an internal fault: logged in full, answered
with a generic reply.
"""
from models.content import MessageChunk, MessageContent, bold, to_plain


class GameLogicError(Exception):
    def __init__(self, *content: MessageChunk):
        self.content: MessageContent = list(content)
        super().__init__(to_plain(self.content))


class InsufficientPlayers(GameLogicError):
    def __init__(self, min_players: int):
        super().__init__(
            f"You need at least {min_players} people to start a game of Eat Poop You Cat"
        )


class GameNotFound(GameLogicError):
    def __init__(self, game_name: str):
        super().__init__("Game ", bold(game_name), " does not exist")


class GameAlreadyComplete(GameLogicError):
    def __init__(self, game_name: str):
        super().__init__("Game ", bold(game_name), " is already complete")


class AlreadyInGame(GameLogicError):
    def __init__(self, game_name: str):
        super().__init__("You are already in game ", bold(game_name))


class NotInGame(GameLogicError):
    def __init__(self, game_name: str):
        super().__init__("You are not in game ", bold(game_name))


class TurnAlreadyPlayed(GameLogicError):
    def __init__(self, game_name: str):
        super().__init__("You've already played your turn on game ", bold(game_name))


class TurnNotFound(GameLogicError):
    def __init__(self, game_name: str, turn_id: str):
        super().__init__("Game ", bold(game_name), f" has no turn {turn_id}")


class TurnAlreadyComplete(GameLogicError):
    def __init__(self, game_name: str):
        super().__init__("This turn on game ", bold(game_name), " has already been played")


class PrecedingTurnIncomplete(GameLogicError):
    def __init__(self, game_name: str):
        super().__init__("The previous turn on game ", bold(game_name), " has not been played yet")


class InconsistentTurnState(GameLogicError):
    def __init__(self, game_name: str, expected: str):
        super().__init__("This turn on game ", bold(game_name), f" needs a {expected}")


class EmptyCaption(GameLogicError):
    def __init__(self):
        super().__init__("Your caption is empty")
