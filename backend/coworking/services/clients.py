# backend/coworking/services/clients.py
"""Read-only client lookups used by the booking lifecycle."""

from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models.generated import Clients as DBClient


class ClientDirectory:

    def __init__(self, db: Session):
        self.db = db

    def load(self, client_id: int) -> DBClient:
        client = self.db.get(DBClient, client_id)
        if not client:
            raise NotFoundError(f"Client {client_id} not found")
        return client

    def get_client(self, client_id: int) -> dict:
        """Contact snapshot: {id, name, phone, email}."""
        client = self.load(client_id)
        return {
            "id": client.id,
            "name": client.full_name,
            "phone": client.phone,
            "email": client.email,
        }
