# backend/salon_booking/repositories/client_repository.py
"""Client lookups used when matching an incoming booking to a client record."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.client import Client
from .base_repository import BaseRepository


class ClientRepository(BaseRepository[Client]):
    def __init__(self, db: Session):
        super().__init__(db, Client)
        self.logger = logging.getLogger(__name__)

    def find_by_email(self, email: str) -> Optional[Client]:
        """Case-insensitive email match."""
        try:
            return (
                self.db.query(Client)
                .filter(func.lower(Client.email) == email.lower())
                .order_by(Client.created_at)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding client by email: {str(e)}")
            raise RepositoryException(f"Failed to find client: {str(e)}")

    def find_by_mobile(self, mobile_digits: str) -> Optional[Client]:
        """Match on the stored digits-only mobile."""
        try:
            return (
                self.db.query(Client)
                .filter(Client.mobile == mobile_digits)
                .order_by(Client.created_at)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding client by mobile: {str(e)}")
            raise RepositoryException(f"Failed to find client: {str(e)}")

    def find_by_name(self, first_name: str, last_name: str) -> List[Client]:
        """All clients whose first and last name match, ignoring case."""
        try:
            return (
                self.db.query(Client)
                .filter(
                    func.lower(Client.first_name) == first_name.strip().lower(),
                    func.lower(Client.last_name) == last_name.strip().lower(),
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding clients by name: {str(e)}")
            raise RepositoryException(f"Failed to find clients: {str(e)}")
