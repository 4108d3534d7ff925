"""Error taxonomy for score storage and leaderboard queries."""

DECK_NOT_FOUND_ERROR_CODE = "ENODECK"


class ScoreStorageError(Exception):
    """Base class for all errors raised by the score storage core."""


class ValidationError(ScoreStorageError):
    """A malformed identifier or score was handed to the update protocol.

    This signals a bug in the caller. It is never retried.
    """


class DeckNotFoundError(ScoreStorageError):
    """No deck matched the given name at any resolution tier."""

    code = DECK_NOT_FOUND_ERROR_CODE

    def __init__(self, name: str) -> None:
        super().__init__(f"Deck not found: {name}")
        self.name = name


class AggregateError(ScoreStorageError):
    """One or more concurrent record updates failed.

    Sibling updates are not rolled back, so callers cannot assume that
    nothing was written.
    """


class MigrationFatalError(ScoreStorageError):
    """A legacy score row could not be replayed."""

    def __init__(self, message: str, row_index: int | None = None) -> None:
        super().__init__(message)
        self.row_index = row_index
