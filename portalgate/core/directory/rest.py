from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Type, TypeVar

import requests
from pydantic import BaseModel

from portalgate.core.directory.base import ClientRecord, ContactRecord, DirectoryUser
from portalgate.core.errors import LookupUnavailableError

T = TypeVar("T", bound=BaseModel)


@dataclass
class RestDirectory:
    """
    Directory over a JSON REST API:

    GET {base_url}/clients/{id}, /contacts/{id}, /users/{id}
    404 -> None; any other failure -> LookupUnavailableError.
    """

    base_url: str
    timeout_seconds: float = 3.0
    headers: Dict[str, str] = field(default_factory=dict)
    session: Optional[requests.Session] = None

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    def _get(self, path: str, model: Type[T]) -> Optional[T]:
        http = self.session or requests
        try:
            r = http.get(self._url(path), headers=self.headers, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise LookupUnavailableError(path=path, error=str(e)) from e
        if r.status_code == 404:
            return None
        if r.status_code != 200:
            raise LookupUnavailableError(path=path, status=r.status_code)
        try:
            data: Any = r.json()
            return model.model_validate(data)
        except ValueError as e:
            raise LookupUnavailableError(path=path, error="invalid_payload") from e

    def client(self, client_id: str) -> Optional[ClientRecord]:
        return self._get(f"/clients/{client_id}", ClientRecord)

    def contact(self, contact_id: str) -> Optional[ContactRecord]:
        return self._get(f"/contacts/{contact_id}", ContactRecord)

    def user(self, user_id: str) -> Optional[DirectoryUser]:
        return self._get(f"/users/{user_id}", DirectoryUser)
