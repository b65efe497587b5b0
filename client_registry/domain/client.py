from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any


CLIENT_FIELDS = ("name", "address", "phone_number")


@dataclass(frozen=True)
class Client:
    """One row of the clients table. `id` is assigned by the store on insert."""

    id: int
    name: str
    address: str
    phone_number: str

    @classmethod
    def from_row(cls, row: Any) -> "Client":
        # sqlite3.Row supports both key and index access; plain tuples only index
        if hasattr(row, "keys"):
            return cls(
                id=int(row["id"]),
                name=row["name"],
                address=row["address"],
                phone_number=row["phone_number"],
            )
        return cls(id=int(row[0]), name=row[1], address=row[2], phone_number=row[3])

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
