from __future__ import annotations

from typing import Dict, Optional, Protocol

from pydantic import BaseModel, ConfigDict


class ClientRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str


class ContactRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str
    role: Optional[str] = None
    client_id: Optional[str] = None


class DirectoryUser(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    email: str = ""
    name: str = ""
    role: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None


class Directory(Protocol):
    """
    Read-only lookups used for display only (banners, impersonation targets).

    Implementations return None for unknown ids and raise on transport failure.
    """

    def client(self, client_id: str) -> Optional[ClientRecord]: ...

    def contact(self, contact_id: str) -> Optional[ContactRecord]: ...

    def user(self, user_id: str) -> Optional[DirectoryUser]: ...


class InMemoryDirectory:
    def __init__(self) -> None:
        self.clients: Dict[str, ClientRecord] = {}
        self.contacts: Dict[str, ContactRecord] = {}
        self.users: Dict[str, DirectoryUser] = {}

    def add_client(self, client_id: str, name: str) -> ClientRecord:
        rec = ClientRecord(id=client_id, name=name)
        self.clients[client_id] = rec
        return rec

    def add_contact(self, contact_id: str, name: str, *, role: Optional[str] = None, client_id: Optional[str] = None) -> ContactRecord:
        rec = ContactRecord(id=contact_id, name=name, role=role, client_id=client_id)
        self.contacts[contact_id] = rec
        return rec

    def add_user(self, user: DirectoryUser) -> DirectoryUser:
        self.users[user.id] = user
        return user

    def client(self, client_id: str) -> Optional[ClientRecord]:
        return self.clients.get(client_id)

    def contact(self, contact_id: str) -> Optional[ContactRecord]:
        return self.contacts.get(contact_id)

    def user(self, user_id: str) -> Optional[DirectoryUser]:
        return self.users.get(user_id)
