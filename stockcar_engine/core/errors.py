"""Exception types raised by the simulation engine."""


class NotFoundError(LookupError):
    """A roster or season lookup referenced an unknown id."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"Unknown {kind} id '{entity_id}'.")
        self.kind = kind
        self.entity_id = entity_id


class WeekendStateError(RuntimeError):
    """A race weekend phase was requested out of order."""
