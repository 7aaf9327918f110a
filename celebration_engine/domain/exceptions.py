"""Root of the celebration engine error hierarchy."""


class CelebrationEngineError(Exception):
    """Any failure the engine reports on purpose.

    Subclasses carry structured attributes (record id, versions, limit
    reason) so callers can branch without parsing ``message``.
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message
