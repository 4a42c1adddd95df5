"""User domain entity."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.user_mvc.core.errors import InvalidParameterError, RecordStateError

# largest value a 32-bit INTEGER column holds on every supported store
MAX_AGE = 2**31 - 1


class User(BaseModel):
    """User record, either transient (no identity yet) or persisted.

    The store assigns ``id`` on creation. Until then ``name`` and ``age`` may be
    reassigned; once persisted the record is frozen, and the only way to obtain
    a persisted user from a transient one is :meth:`persisted`.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: int | None = Field(
        default=None, description="Store-assigned identity, None while transient"
    )
    name: str = Field(default="", strict=True, description="User's name")
    age: int = Field(
        default=0, ge=0, le=MAX_AGE, strict=True, description="User's age in years"
    )

    @classmethod
    def transient(cls, name: str = "", age: int = 0) -> "User":
        """Build an unsaved user, reporting bad field values as InvalidParameterError."""
        try:
            return cls(name=name, age=age)
        except ValidationError as e:
            error = e.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else "user"
            raise InvalidParameterError(field, error.get("input"), error["msg"]) from e

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def persisted(self, identity: int) -> "User":
        """Return the persisted copy of this user carrying ``identity``."""
        if self.is_persisted:
            raise RecordStateError(f"User {self.id} is already persisted")
        return User(id=identity, name=self.name, age=self.age)

    def __setattr__(self, name: str, value: Any) -> None:
        if self.is_persisted:
            raise RecordStateError(f"User {self.id} is persisted and cannot be modified")
        if name == "id":
            raise RecordStateError("The identity of a user is assigned by the store")
        super().__setattr__(name, value)
