"""
Test suite for GiftCardService.

System role: Verification of gift card issuance and redemption
"""

import re
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from debrid_proxy.application.services.gift_card_service import (
    MAX_GENERATION_ATTEMPTS,
    GiftCardService,
    create_card_number,
    format_card_number,
    normalize_card_number,
)
from debrid_proxy.boundary.db.CRUD import GiftCardCRUD, RedeemCRUD, UserCRUD
from debrid_proxy.core.exceptions import (
    ConflictError,
    DebridProxyException,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

CARD_PATTERN = re.compile(r"^[A-Z0-9]{5}-[A-Z0-9]{5}-[A-Z0-9]{5}$")


@pytest.fixture
def cards() -> AsyncMock:
    return AsyncMock(spec=GiftCardCRUD)


@pytest.fixture
def redeems() -> AsyncMock:
    return AsyncMock(spec=RedeemCRUD)


@pytest.fixture
def users() -> AsyncMock:
    return AsyncMock(spec=UserCRUD)


@pytest.fixture
def service(cards, redeems, users) -> GiftCardService:
    return GiftCardService(cards, redeems, users)


def make_card(**overrides) -> dict:
    card = {
        "_id": ObjectId(),
        "card_number": "ABCDE-FGHIJ-12345",
        "storage": 50,
        "value": 9.99,
        "used": False,
        "used_by": None,
        "metadata": {},
        "created_at": "2025-01-01T08:00:00.000+08:00",
        "updated_at": "2025-01-01T08:00:00.000+08:00",
    }
    card.update(overrides)
    return card


class TestCardNumbers:
    def test_created_numbers_should_match_format(self) -> None:
        for _ in range(20):
            assert CARD_PATTERN.match(create_card_number())

    def test_format_should_group_by_five(self) -> None:
        assert format_card_number("ABCDEFGHIJ12345") == "ABCDE-FGHIJ-12345"

    @pytest.mark.parametrize(
        "raw",
        ["abcde-fghij-12345", "ABCDEFGHIJ12345", " abcde fghij 12345 ", "ABCDE_FGHIJ.12345"],
    )
    def test_normalize_should_ignore_separators_and_case(self, raw) -> None:
        assert normalize_card_number(raw) == "ABCDE-FGHIJ-12345"

    @pytest.mark.parametrize(
        ("raw", "message"),
        [
            (None, "card_number is required"),
            ("   ", "card_number is required"),
            ("ABCDE-FGHIJ", "card_number must be 15 letters or digits"),
            ("ABCDE-FGHIJ-123456", "card_number must be 15 letters or digits"),
        ],
    )
    def test_normalize_should_reject_malformed(self, raw, message) -> None:
        with pytest.raises(ValidationError, match=message):
            normalize_card_number(raw)


class TestCreateCard:
    @pytest.mark.asyncio
    async def test_should_issue_unused_card(self, service, cards) -> None:
        cards.card_number_exists.return_value = False
        cards.create.side_effect = lambda doc: {**doc, "_id": ObjectId()}

        result = await service.create_card({"storage": 100, "value": 5, "metadata": {"batch": 1}})

        assert CARD_PATTERN.match(result.card_number)
        assert result.used is False
        assert result.used_by is None
        assert result.metadata == {"batch": 1}

    @pytest.mark.asyncio
    async def test_should_retry_on_collision(self, service, cards) -> None:
        cards.card_number_exists.side_effect = [True, True, False]
        cards.create.side_effect = lambda doc: {**doc, "_id": ObjectId()}

        await service.create_card({"storage": 1, "value": 1})

        assert cards.card_number_exists.await_count == 3

    @pytest.mark.asyncio
    async def test_should_give_up_after_max_attempts(self, service, cards) -> None:
        cards.card_number_exists.return_value = True

        with pytest.raises(DebridProxyException, match="Failed to generate a unique card number"):
            await service.create_card({"storage": 1, "value": 1})

        assert cards.card_number_exists.await_count == MAX_GENERATION_ATTEMPTS
        cards.create.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("payload", "message"),
        [
            ({"value": 1}, "storage must be a positive number"),
            ({"storage": 1, "value": 0}, "value must be a positive number"),
            ({"storage": 1, "value": 1, "metadata": [1]}, "metadata must be an object if provided"),
        ],
    )
    async def test_should_validate_payload(self, service, cards, payload, message) -> None:
        with pytest.raises(ValidationError, match=message):
            await service.create_card(payload)

        cards.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_cards_should_pass_used_filter(service, cards) -> None:
    cards.list_cards.return_value = [make_card(used=True)]

    result = await service.list_cards(used=True)

    assert result[0].used is True
    cards.list_cards.assert_awaited_once_with(used=True)


@pytest.mark.asyncio
async def test_get_card_should_normalise_lookup(service, cards) -> None:
    cards.get_by_card_number.return_value = None

    with pytest.raises(NotFoundError, match="Gift card not found"):
        await service.get_card("abcde fghij 12345")

    cards.get_by_card_number.assert_awaited_once_with("ABCDE-FGHIJ-12345")


class TestRedeem:
    @pytest.fixture
    def redeemable(self, cards, redeems, users, standard_user) -> dict:
        claimed = make_card(used=True, used_by={"user_id": standard_user["_id"], "email": "user@example.com"})
        users.get_active_by_id.return_value = standard_user
        cards.claim.return_value = claimed
        redeems.create.side_effect = lambda doc: {**doc, "_id": ObjectId()}
        users.credit_storage.return_value = {
            **standard_user,
            "storage_all": 110,
            "storage_used": 0,
        }
        return claimed

    @pytest.mark.asyncio
    async def test_should_claim_card_and_credit_remaining_balance(
        self, service, cards, redeems, users, standard_user, redeemable
    ) -> None:
        result = await service.redeem({"card_number": "abcde-fghij-12345"}, standard_user)

        card_number, used_by, _ = cards.claim.await_args.args
        assert card_number == "ABCDE-FGHIJ-12345"
        assert used_by == {"user_id": standard_user["_id"], "email": "user@example.com"}

        ledger = redeems.create.await_args.args[0]
        assert ledger["storage_allocated"] == 50
        assert ledger["user_snapshot"] == {
            "email": "user@example.com",
            "storage_all": 100,
            "storage_used": 40,
        }

        user_id, storage, expires_at, _ = users.credit_storage.await_args.args
        assert user_id == standard_user["_id"]
        assert storage == 50
        assert expires_at == result.redeem.storage_expired_at

        assert result.card.used is True
        assert result.card.used_by.email == "user@example.com"
        assert result.user.storage_all == 110
        assert result.user.storage_used == 0
        cards.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_should_reject_redeeming_for_another_user(self, service, cards, standard_user) -> None:
        with pytest.raises(PermissionDeniedError):
            await service.redeem(
                {"card_number": "ABCDE-FGHIJ-12345", "user_id": str(ObjectId())}, standard_user
            )

        cards.claim.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_should_redeem_for_another_user(
        self, service, users, admin_user, standard_user, redeemable
    ) -> None:
        result = await service.redeem(
            {"card_number": "ABCDE-FGHIJ-12345", "user_id": str(standard_user["_id"])}, admin_user
        )

        users.get_active_by_id.assert_awaited_once_with(standard_user["_id"])
        assert result.user.id == str(standard_user["_id"])

    @pytest.mark.asyncio
    async def test_should_reject_malformed_user_id(self, service, admin_user) -> None:
        with pytest.raises(ValidationError, match="user_id must be a valid identifier"):
            await service.redeem({"card_number": "ABCDE-FGHIJ-12345", "user_id": "bad"}, admin_user)

    @pytest.mark.asyncio
    async def test_should_404_for_deleted_user(self, service, users, cards, standard_user) -> None:
        users.get_active_by_id.return_value = None

        with pytest.raises(NotFoundError, match="User not found"):
            await service.redeem({"card_number": "ABCDE-FGHIJ-12345"}, standard_user)

        cards.claim.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_used_card_should_conflict(self, service, users, cards, standard_user) -> None:
        users.get_active_by_id.return_value = standard_user
        cards.claim.return_value = None
        cards.card_number_exists.return_value = True

        with pytest.raises(ConflictError, match="Gift card has already been redeemed"):
            await service.redeem({"card_number": "ABCDE-FGHIJ-12345"}, standard_user)

    @pytest.mark.asyncio
    async def test_unknown_card_should_404(self, service, users, cards, redeems, standard_user) -> None:
        users.get_active_by_id.return_value = standard_user
        cards.claim.return_value = None
        cards.card_number_exists.return_value = False

        with pytest.raises(NotFoundError, match="Gift card not found"):
            await service.redeem({"card_number": "ABCDE-FGHIJ-12345"}, standard_user)

        redeems.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_credit_failure_should_release_card_and_drop_ledger_entry(
        self, service, cards, redeems, users, standard_user, redeemable
    ) -> None:
        users.credit_storage.return_value = None

        with pytest.raises(NotFoundError):
            await service.redeem({"card_number": "ABCDE-FGHIJ-12345"}, standard_user)

        redeems.delete_by_id.assert_awaited_once()
        assert cards.release.await_args.args[0] == redeemable["_id"]

    @pytest.mark.asyncio
    async def test_ledger_failure_should_release_card(
        self, service, cards, redeems, users, standard_user, redeemable
    ) -> None:
        redeems.create.side_effect = RuntimeError("write failed")

        with pytest.raises(RuntimeError, match="write failed"):
            await service.redeem({"card_number": "ABCDE-FGHIJ-12345"}, standard_user)

        redeems.delete_by_id.assert_not_awaited()
        cards.release.assert_awaited_once()
        users.credit_storage.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_quota_should_be_reset_before_claim(
        self, service, redeems, users, user_factory, redeemable
    ) -> None:
        expired = user_factory(storage_expired_at="2000-01-01T00:00:00.000+08:00")
        users.get_active_by_id.return_value = expired
        users.update_by_id.side_effect = lambda oid, fields: {**expired, **fields}

        await service.redeem({"card_number": "ABCDE-FGHIJ-12345"}, expired)

        assert users.update_by_id.await_args.args[1]["storage_all"] == 0
        snapshot = redeems.create.await_args.args[0]["user_snapshot"]
        assert snapshot["storage_all"] == 0
        assert snapshot["storage_used"] == 0
