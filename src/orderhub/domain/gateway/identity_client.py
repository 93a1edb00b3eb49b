"""Port for the identity collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderhub.domain.model.user import UserRecord


class IdentityClient(ABC):

    @abstractmethod
    def resolve(self, user_id: str) -> UserRecord:
        """Confirm the user exists.

        Raises IdentityNotFoundError for unknown ids and
        IdentityUnavailableError when the service cannot answer.
        """
