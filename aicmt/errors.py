"""Error taxonomy for diff splitting and commit application."""


class AicmtError(Exception):
    """Base class for errors raised by the split pipeline."""
    pass


class ParseError(AicmtError):
    """Raised when a raw diff cannot be turned into units."""
    pass


class OracleError(AicmtError):
    """Raised when the grouping oracle fails or answers with nothing usable."""
    pass


class ApplyError(AicmtError):
    """Raised when staging or committing a group fails.

    ``rolled_back`` tells whether the repository was reset to ``checkpoint``;
    ``commits_undone`` is how many commits that reset removed.
    """

    def __init__(self, message: str, *, group_number: int, step: str,
                 checkpoint: str | None = None, rolled_back: bool = False,
                 commits_undone: int = 0):
        super().__init__(message)
        self.group_number = group_number
        self.step = step
        self.checkpoint = checkpoint
        self.rolled_back = rolled_back
        self.commits_undone = commits_undone


class RollbackError(AicmtError):
    """Raised when resetting to the checkpoint fails after an ApplyError.

    Always carries the checkpoint revision so the repository can be
    recovered by hand.
    """

    def __init__(self, message: str, *, checkpoint: str, commits_attempted: int,
                 commits_rolled_back: int, apply_error: ApplyError):
        super().__init__(message)
        self.checkpoint = checkpoint
        self.commits_attempted = commits_attempted
        self.commits_rolled_back = commits_rolled_back
        self.apply_error = apply_error


__all__ = [
    "AicmtError",
    "ParseError",
    "OracleError",
    "ApplyError",
    "RollbackError",
]
