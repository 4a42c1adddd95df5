"""Error taxonomy shared by the gateway, the record model and the dispatcher."""


class UserMvcError(Exception):
    """Base class for every error raised inside the request pipeline."""


class StoreConnectionError(UserMvcError):
    """The relational store is unreachable or the credentials were rejected."""


class PersistenceError(UserMvcError):
    """A read or write failed against an established connection."""


class UnknownActionError(UserMvcError):
    """The requested action does not name a registered handler."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown action: {action!r}")
        self.action = action


class InvalidParameterError(UserMvcError):
    """A request parameter is present but cannot be interpreted."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid value for {name!r}: {value!r} ({reason})")
        self.name = name
        self.value = value
        self.reason = reason


class RecordStateError(UserMvcError):
    """An operation is not allowed in the record's current lifecycle state."""
