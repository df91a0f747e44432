# backend/salon_booking/services/client_service.py
"""
Client matching for incoming bookings.

Precedence: email (case-insensitive), then mobile digits, then first and
last name. A same-name match is only trusted when a phone number tells the
records apart; otherwise the booking is refused with a request for a mobile
number rather than guessing or silently creating a duplicate.
"""

from dataclasses import dataclass
import logging
import re
from typing import Dict, List, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from ..core.constants import EMAIL_TYPO_DOMAINS
from ..core.exceptions import ClientAmbiguityException, NotFoundException, ValidationException
from ..models.client import Client
from ..repositories.client_repository import ClientRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

_EMAIL_ADAPTER = TypeAdapter(EmailStr)


def normalize_phone(value: Optional[str]) -> str:
    """Digits only; "+44 (0)7700 900-123" becomes "4407700900123"."""
    return re.sub(r"\D", "", value or "")


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def is_valid_email(value: Optional[str]) -> bool:
    """RFC address check plus a guard against common gmail typo domains."""
    email = normalize_email(value)
    if not email:
        return False
    try:
        _EMAIL_ADAPTER.validate_python(email)
    except ValidationError:
        return False
    return not any(email.endswith(f"@{domain}") for domain in EMAIL_TYPO_DOMAINS)


@dataclass
class ClientDetails:
    first_name: str
    last_name: str
    email: Optional[str] = None
    mobile: Optional[str] = None
    client_id: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()


class ClientService(BaseService):
    def __init__(self, db: Session, repository: Optional[ClientRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_client_repository(db)

    def validate(self, details: ClientDetails) -> None:
        if not (details.first_name or "").strip() or not (details.last_name or "").strip():
            raise ValidationException(
                "Please enter a first and last name", code="CLIENT_NAME_REQUIRED"
            )
        if not normalize_email(details.email) and not normalize_phone(details.mobile):
            raise ValidationException(
                "Please enter at least an email address or a mobile number",
                code="CLIENT_CONTACT_REQUIRED",
            )
        if normalize_email(details.email) and not is_valid_email(details.email):
            raise ValidationException(
                "Please check the email address",
                code="INVALID_EMAIL",
                details={"email": details.email},
            )

    @BaseService.measure_operation("find_or_create_client")
    def find_or_create(self, details: ClientDetails) -> Client:
        """
        Resolve the client for a booking. Staged in the session, not committed.

        Raises:
            ValidationException: Missing name/contact or malformed email
            ClientAmbiguityException: Same-name client the phone cannot confirm
            NotFoundException: ``client_id`` given but unknown
        """
        if details.client_id:
            client = self.repository.get_by_id(details.client_id)
            if client is None:
                raise NotFoundException(
                    f"Client {details.client_id} not found", code="CLIENT_NOT_FOUND"
                )
            return client

        self.validate(details)
        first = details.first_name.strip()
        last = details.last_name.strip()
        email = normalize_email(details.email)
        mobile = normalize_phone(details.mobile)

        if email:
            client = self.repository.find_by_email(email)
            if client is not None:
                self._patch_missing(client, first=first, last=last, email=email, mobile=mobile)
                return client

        if mobile:
            client = self.repository.find_by_mobile(mobile)
            if client is not None:
                self._patch_missing(client, first=first, last=last, email=email, mobile=mobile)
                return client

        candidates = self.repository.find_by_name(first, last)
        if candidates and self._name_match_is_ambiguous(candidates, mobile):
            self.logger.info(
                "Client match ambiguous",
                extra={"candidates": len(candidates), "has_mobile": bool(mobile)},
            )
            raise ClientAmbiguityException(first, last, len(candidates))

        client = self.repository.create(
            first_name=first,
            last_name=last,
            email=email or None,
            mobile=mobile or None,
        )
        self.log_operation("client_created", client_id=client.id)
        return client

    @staticmethod
    def _name_match_is_ambiguous(candidates: List[Client], mobile: str) -> bool:
        # Reaching here means no candidate has this mobile. Candidates without a
        # phone on record could still be the same person.
        if not mobile:
            return True
        return any(not normalize_phone(c.mobile) for c in candidates)

    def _patch_missing(self, client: Client, **values: str) -> None:
        """Fill blank fields on a matched client without overwriting anything."""
        field_map = {"first": "first_name", "last": "last_name", "email": "email", "mobile": "mobile"}
        patch: Dict[str, str] = {}
        for key, attr in field_map.items():
            value = values.get(key)
            if value and not getattr(client, attr):
                patch[attr] = value
        if patch:
            for attr, value in patch.items():
                setattr(client, attr, value)
            self.db.flush()
            self.log_operation("client_patched", client_id=client.id, fields=sorted(patch))
