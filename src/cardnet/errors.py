"""Exception types raised across the engine boundary.

Algorithmic code (graph building, clustering, layout) never raises for graph
content; these types cover collaborator failures and invalid operator intents.
"""


class CardnetError(Exception):
    """Base class for all cardnet errors."""


class AnalysisMethodError(CardnetError):
    """One analysis method failed. Logged, never propagated on its own."""

    def __init__(self, method: str, cause: BaseException) -> None:
        super().__init__(f"Analysis method '{method}' failed: {cause}")
        self.method = method
        self.cause = cause


class AnalysisFailedError(CardnetError):
    """Every analysis method of a run failed."""

    def __init__(self, errors: list[AnalysisMethodError]) -> None:
        methods = ", ".join(e.method for e in errors) or "none"
        super().__init__(f"All analysis methods failed ({methods})")
        self.errors = errors


class StorageError(CardnetError):
    """The storage collaborator reported a failure."""


class RelationshipCreationError(StorageError):
    """Creating one approved relationship failed."""

    def __init__(self, source_card_id: str, target_card_id: str, cause: BaseException) -> None:
        super().__init__(
            f"Failed to create relationship {source_card_id} -> {target_card_id}: {cause}"
        )
        self.source_card_id = source_card_id
        self.target_card_id = target_card_id
        self.cause = cause


class UnknownSuggestionError(CardnetError):
    """The requested pair is not in the candidate list."""

    def __init__(self, pair: tuple[str, str]) -> None:
        super().__init__(f"No suggestion for pair {pair[0]} <-> {pair[1]}")
        self.pair = pair


class BoardNotLoadedError(CardnetError):
    """A command needs board data that has not been loaded yet."""
