"""DTOs for Core app - data handed across the queue boundary."""
from dataclasses import dataclass, asdict
from uuid import UUID


@dataclass(frozen=True)
class ActorDTO:
    """
    Identity of the user who enqueued a unit of work.

    Captured at enqueue time; units authorize against this snapshot
    rather than the live user row.
    """
    id: UUID
    name: str
    email: str

    @classmethod
    def from_user(cls, user) -> "ActorDTO":
        return cls(id=user.id, name=user.name, email=user.email)

    @classmethod
    def from_payload(cls, data: dict) -> "ActorDTO":
        return cls(id=UUID(str(data['id'])), name=data.get('name', ''), email=data.get('email', ''))

    def to_payload(self) -> dict:
        data = asdict(self)
        data['id'] = str(self.id)
        return data
