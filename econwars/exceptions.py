"""
Custom exception hierarchy for the game engine and room server.

Engine precondition failures are not exceptions: action methods return
False and leave state untouched. These errors cover setup, persistence
and the user-facing room protocol, whose messages are shown to players.
"""


class EconWarsError(Exception):
    """Base exception for all game-related errors."""


class InvalidGameSetupError(EconWarsError):
    """Player list or map choice cannot produce a game."""


class SnapshotError(EconWarsError):
    """A saved document could not be restored."""


class SnapshotVersionError(SnapshotError):
    """A saved document uses an unknown schema version."""


class RoomError(EconWarsError):
    """Base class for room protocol errors shown to the client."""

    message = "Something went wrong."

    def __init__(self, message: str = ""):
        super().__init__(message or self.message)


class RoomNotFoundError(RoomError):
    message = "Room not found. Check the code and try again."


class RoomFullError(RoomError):
    message = "Room is full (max 8 players)."


class DuplicateNameError(RoomError):
    message = "A player with that name is already in the room."


class PlayerKickedError(RoomError):
    message = "You were removed from this game by the host."


class GameAlreadyStartedError(RoomError):
    message = "Game already started. Rejoin is only available from the same browser/device."


class NotRoomCreatorError(RoomError):
    message = "Only the host can do that."


class NotEnoughPlayersError(RoomError):
    message = "At least 2 players are needed to start."


class NotInRoomError(RoomError):
    message = "You are not in a room."


class SavedGameNotFoundError(RoomError):
    message = "No saved game found for that room."
