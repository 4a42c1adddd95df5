"""User database table model."""

from sqlmodel import Field, SQLModel


class UserTable(SQLModel, table=True):
    """Database persistence model for users.

    Declares the ``users`` table for the schema bootstrap. Reads and writes go
    through the persistence gateway with plain parameterized SQL.
    """

    __tablename__ = "users"  # type: ignore[assignment]
    # ids are never reused, so creation order and id order agree
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(nullable=False)
    age: int = Field(nullable=False)
