"""Game domain services: board rules, seat registry and the reset protocol.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""


class GameError(Exception):
    """Base class for programming errors raised by the domain layer."""


class InvalidBoardError(GameError):
    pass
