"""
Test suite for request body validation across the JSON API.

Real services run over AsyncMock CRUDs so wrongly typed bodies reach the
service validators and surface their field-specific messages.

System role: Verification of request validation messages over HTTP
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from debrid_proxy.api.deps.dependencies import (
    get_gift_card_service,
    get_transaction_service,
    get_user_service,
)
from debrid_proxy.application.services.gift_card_service import GiftCardService
from debrid_proxy.application.services.transaction_service import TransactionService
from debrid_proxy.application.services.user_service import UserService
from debrid_proxy.boundary.db.CRUD import (
    GiftCardCRUD,
    RedeemCRUD,
    TransactionCRUD,
    UserCRUD,
    VerificationCRUD,
)
from debrid_proxy.boundary.mail.mailersend_client import MailerSendClient
from debrid_proxy.core.security import TokenIssuer


@pytest.fixture
def crud() -> dict[str, AsyncMock]:
    return {
        "cards": AsyncMock(spec=GiftCardCRUD),
        "redeems": AsyncMock(spec=RedeemCRUD),
        "users": AsyncMock(spec=UserCRUD),
        "transactions": AsyncMock(spec=TransactionCRUD),
        "verifications": AsyncMock(spec=VerificationCRUD),
    }


@pytest.fixture
def real_services(app, client, crud):
    """Swap the mocked services for real ones over the CRUD mocks."""
    gift_cards = GiftCardService(crud["cards"], crud["redeems"], crud["users"])
    transactions = TransactionService(crud["transactions"])
    users = UserService(
        crud["users"],
        crud["verifications"],
        MagicMock(spec=TokenIssuer),
        AsyncMock(spec=MailerSendClient),
    )
    app.dependency_overrides[get_gift_card_service] = lambda: gift_cards
    app.dependency_overrides[get_transaction_service] = lambda: transactions
    app.dependency_overrides[get_user_service] = lambda: users
    return client


def make_transaction_body(**overrides) -> dict:
    body = {
        "user_id": str(ObjectId()),
        "user_email": "buyer@example.com",
        "order_amount": 12.5,
        "order_date": "2025-03-01T00:00:00.000Z",
        "order_key": "ORDER-42",
        "order_desc": "Premium 30 days",
    }
    body.update(overrides)
    return body


def assert_rejected(response, message: str) -> None:
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == message


class TestGiftCardBodies:
    def test_non_numeric_storage_should_report_field(
        self, real_services, as_user, admin_user, crud
    ) -> None:
        # Arrange
        client = as_user(admin_user)

        # Act
        response = client.post("/gift-cards", json={"storage": "abc", "value": 1})

        # Assert
        assert_rejected(response, "storage must be a positive number")
        crud["cards"].create.assert_not_awaited()

    def test_boolean_value_should_report_field(
        self, real_services, as_user, admin_user, crud
    ) -> None:
        response = as_user(admin_user).post("/gift-cards", json={"storage": 5, "value": True})

        assert_rejected(response, "value must be a positive number")

    def test_numeric_user_id_on_redeem_should_report_field(
        self, real_services, as_user, admin_user, crud
    ) -> None:
        response = as_user(admin_user).post(
            "/gift-cards/redeem", json={"card_number": "ABCDE12345FGHIJ", "user_id": 42}
        )

        assert_rejected(response, "user_id must be a valid identifier")
        crud["users"].get_active_by_id.assert_not_awaited()


class TestTransactionBodies:
    def test_non_numeric_order_amount_should_report_field(
        self, real_services, as_user, admin_user, crud
    ) -> None:
        """A string amount reaches the service and fails its number check."""
        # Arrange
        client = as_user(admin_user)

        # Act
        response = client.post("/transactions", json=make_transaction_body(order_amount="ten"))

        # Assert
        assert_rejected(response, "order_amount must be a positive number")
        crud["transactions"].create.assert_not_awaited()

    def test_numeric_user_id_should_report_field(
        self, real_services, as_user, admin_user
    ) -> None:
        response = as_user(admin_user).post(
            "/transactions", json=make_transaction_body(user_id=12345)
        )

        assert_rejected(response, "user_id must be a valid id")

    def test_object_order_date_should_report_field(
        self, real_services, as_user, admin_user
    ) -> None:
        response = as_user(admin_user).post(
            "/transactions", json=make_transaction_body(order_date={"day": 1})
        )

        assert_rejected(response, "order_date must be a valid date")

    def test_update_should_enforce_currency_length(
        self, real_services, as_user, admin_user, crud
    ) -> None:
        # Arrange
        transaction_id = ObjectId()
        crud["transactions"].get_by_id.return_value = {"_id": transaction_id, "order_key": "K"}

        # Act
        response = as_user(admin_user).put(
            f"/transactions/{transaction_id}", json={"currency": "DOLLARS-US-X"}
        )

        # Assert
        assert_rejected(response, "currency is too long (>10 chars)")
        crud["transactions"].update_by_id.assert_not_awaited()


class TestUserBodies:
    def test_non_numeric_storage_all_should_report_field(
        self, real_services, as_user, admin_user, crud
    ) -> None:
        response = as_user(admin_user).post(
            "/users",
            json={"email": "new@example.com", "password": "secret123", "storage_all": "lots"},
        )

        assert_rejected(response, "storage_all must be a positive number")
        crud["users"].create.assert_not_awaited()

    def test_numeric_login_email_should_report_field(self, real_services, crud) -> None:
        response = real_services.post("/users/login", json={"email": 123, "password": "secret123"})

        assert_rejected(response, "Email is required")
        crud["users"].get_by_email.assert_not_awaited()
