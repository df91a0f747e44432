import pytest

from salon_booking.core.exceptions import (
    ClientAmbiguityException,
    NotFoundException,
    ValidationException,
)
from salon_booking.models.client import Client
from salon_booking.services.client_service import (
    ClientDetails,
    ClientService,
    is_valid_email,
    normalize_phone,
)


@pytest.fixture
def service(db):
    return ClientService(db)


class TestValidation:
    @pytest.mark.parametrize(
        "details, code",
        [
            (ClientDetails("", "Bloggs", email="jo@example.com"), "CLIENT_NAME_REQUIRED"),
            (ClientDetails("Jo", "  ", email="jo@example.com"), "CLIENT_NAME_REQUIRED"),
            (ClientDetails("Jo", "Bloggs"), "CLIENT_CONTACT_REQUIRED"),
            (ClientDetails("Jo", "Bloggs", email="jo@gmail.con"), "INVALID_EMAIL"),
            (ClientDetails("Jo", "Bloggs", email="not-an-email"), "INVALID_EMAIL"),
        ],
    )
    def test_rejects_bad_details(self, service, details, code):
        with pytest.raises(ValidationException) as exc_info:
            service.validate(details)
        assert exc_info.value.code == code

    def test_mobile_alone_is_enough(self, service):
        service.validate(ClientDetails("Jo", "Bloggs", mobile="07700 900123"))

    def test_email_helpers(self):
        assert is_valid_email(" Jo@Example.com ")
        assert not is_valid_email("jo@gmail.co")
        assert not is_valid_email("")
        assert normalize_phone("+44 (0)7700 900-123") == "4407700900123"

    @pytest.mark.parametrize(
        "email", ["jo@example..com", "jo..x@example.com", "jo@-example.com", "jo@example"]
    )
    def test_rejects_malformed_addresses(self, email):
        assert not is_valid_email(email)


class TestFindOrCreate:
    def test_matches_by_email_case_insensitively(self, db, service, make_client):
        existing = make_client(email="jo@example.com")

        found = service.find_or_create(ClientDetails("Jo", "Bloggs", email="JO@example.com"))

        assert found.id == existing.id
        assert db.query(Client).count() == 1

    def test_email_match_fills_missing_mobile(self, service, make_client):
        existing = make_client(email="jo@example.com")

        found = service.find_or_create(
            ClientDetails("Jo", "Bloggs", email="jo@example.com", mobile="07700 900123")
        )

        assert found.id == existing.id
        assert found.mobile == "07700900123"

    def test_email_match_never_overwrites(self, service, make_client):
        make_client(email="jo@example.com", mobile="07700900999")

        found = service.find_or_create(
            ClientDetails("Jo", "Bloggs", email="jo@example.com", mobile="07700 900123")
        )

        assert found.mobile == "07700900999"

    def test_matches_by_mobile(self, service, make_client):
        existing = make_client(mobile="07700900123")

        found = service.find_or_create(ClientDetails("Jo", "Bloggs", mobile="07700 900 123"))

        assert found.id == existing.id

    def test_same_name_without_mobile_is_ambiguous(self, db, service, make_client):
        make_client(email="jo@example.com")

        with pytest.raises(ClientAmbiguityException) as exc_info:
            service.find_or_create(ClientDetails("jo", "BLOGGS", email="other@example.com"))

        assert exc_info.value.details["required_field"] == "mobile"
        assert db.query(Client).count() == 1

    def test_same_name_candidate_without_phone_is_ambiguous(self, service, make_client):
        make_client(email="jo@example.com")

        with pytest.raises(ClientAmbiguityException):
            service.find_or_create(
                ClientDetails("Jo", "Bloggs", email="new@example.com", mobile="07700900555")
            )

    def test_same_name_with_different_phone_creates_new_client(self, db, service, make_client):
        make_client(mobile="07700900111")

        created = service.find_or_create(ClientDetails("Jo", "Bloggs", mobile="07700900222"))
        db.commit()

        assert created.mobile == "07700900222"
        assert db.query(Client).count() == 2

    def test_creates_new_client(self, db, service):
        created = service.find_or_create(
            ClientDetails(" Jo ", "Bloggs", email=" Jo@Example.com ")
        )
        db.commit()

        assert created.first_name == "Jo"
        assert created.email == "jo@example.com"
        assert created.full_name == "Jo Bloggs"

    def test_explicit_client_id(self, service, make_client):
        existing = make_client(email="jo@example.com")

        found = service.find_or_create(ClientDetails("", "", client_id=existing.id))

        assert found.id == existing.id

    def test_unknown_client_id(self, service):
        with pytest.raises(NotFoundException):
            service.find_or_create(
                ClientDetails("Jo", "Bloggs", client_id="01HZZZZZZZZZZZZZZZZZZZZZZZ")
            )
