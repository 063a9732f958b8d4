from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from campustrades.errors import (
    ConversationNotFound,
    ItemRequestNotFound,
    NotAuthenticated,
    ProductNotFound,
    ValidationError,
)
from campustrades.models.conversation import Conversation
from campustrades.services.directory import ConversationDirectoryService
from campustrades.viewer import Role
from factories import viewer


def directory(session, profile):
    return ConversationDirectoryService(session, viewer(profile))


@pytest.mark.parametrize("filter_type", ["all", "unread", "important"])
def test_anonymous_viewer_gets_empty_list(session, market, alice, bob, filter_type):
    market.conversation(alice, bob, is_unread_buyer=True, is_important_buyer=True)

    assert directory(session, None).list_conversations(filter_type) == []
    assert directory(session, None).unread_count() == 0


def test_unknown_filter_is_rejected(session, alice):
    with pytest.raises(ValidationError) as exc:
        directory(session, alice).list_conversations("archived")
    assert exc.value.field == "filter"


def test_only_participating_conversations_are_listed(session, market, alice, bob, carol):
    mine = market.conversation(alice, bob)
    market.conversation(carol, bob)

    ids = [c.id for c in directory(session, alice).list_conversations()]

    assert ids == [mine.id]


def test_unread_filter_uses_the_viewer_role_flag(session, market, alice, bob, carol):
    # alice is buyer in the first, seller in the second
    as_buyer = market.conversation(alice, bob, is_unread_buyer=True)
    as_seller = market.conversation(carol, alice, is_unread_seller=True)
    market.conversation(alice, bob, is_unread_seller=True)
    market.conversation(carol, alice, is_unread_buyer=True)

    ids = {c.id for c in directory(session, alice).list_conversations("unread")}

    assert ids == {as_buyer.id, as_seller.id}


def test_important_filter(session, market, alice, bob, carol):
    starred = market.conversation(alice, bob, is_important_buyer=True)
    market.conversation(carol, alice, is_important_buyer=True)

    result = directory(session, alice).list_conversations("important")

    assert [c.id for c in result] == [starred.id]
    assert result[0].is_important is True


def test_ordering_by_last_message_with_silent_conversations_last(session, market, alice, bob):
    now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    silent = market.conversation(alice, bob)
    older = market.conversation(alice, bob, last_message_at=now - timedelta(hours=2))
    newer = market.conversation(alice, bob, last_message_at=now)

    ids = [c.id for c in directory(session, alice).list_conversations()]

    assert ids == [newer.id, older.id, silent.id]


def test_malformed_conversations_are_excluded(session, market, alice, bob):
    product = market.product(bob)
    request = market.item_request(alice)
    market.conversation(alice, bob, product=product, item_request=request, is_unread_buyer=True)
    market.conversation(alice, bob, product_id=None, is_unread_buyer=True)
    good = market.conversation(alice, bob)

    service = directory(session, alice)

    assert [c.id for c in service.list_conversations()] == [good.id]
    assert service.unread_count() == 0


def test_summary_is_decorated_for_the_viewer(session, market, alice, bob):
    product = market.product(bob, title="Mini fridge", price=40.0,
                             image_urls=["https://cdn.example/fridge-1.jpg", "https://cdn.example/fridge-2.jpg"])
    conversation = market.conversation(alice, bob, product=product, is_unread_seller=True)
    market.message(conversation, alice, "Is it still available?", created_at=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
    market.message(conversation, bob, "Yes!", created_at=datetime(2026, 3, 1, 9, 5, tzinfo=timezone.utc))

    as_buyer = directory(session, alice).get_conversation(conversation.id)
    as_seller = directory(session, bob).get_conversation(conversation.id)

    assert as_buyer.role is Role.BUYER
    assert as_buyer.counterpart.full_name == "Bob Seller"
    assert as_buyer.is_unread is False
    assert as_buyer.listing.kind == "product"
    assert as_buyer.listing.title == "Mini fridge"
    assert as_buyer.listing.image_url == "https://cdn.example/fridge-1.jpg"
    assert as_buyer.last_message.content == "Yes!"

    assert as_seller.role is Role.SELLER
    assert as_seller.counterpart.full_name == "Alice Buyer"
    assert as_seller.counterpart.avatar_url == "https://cdn.example/alice.png"
    assert as_seller.is_unread is True


def test_item_request_listing_summary(session, market, alice, bob):
    request = market.item_request(alice, title="TI-84 calculator")
    conversation = market.conversation(alice, bob, item_request=request)

    summary = directory(session, bob).get_conversation(conversation.id)

    assert summary.listing.kind == "item_request"
    assert summary.listing.title == "TI-84 calculator"
    assert summary.last_message is None


def test_non_participant_cannot_see_conversation(session, market, alice, bob, carol):
    conversation = market.conversation(alice, bob)

    with pytest.raises(ConversationNotFound):
        directory(session, carol).get_conversation(conversation.id)


def test_unread_count_counts_only_viewer_role_flags(session, market, alice, bob):
    market.conversation(alice, bob, is_unread_buyer=True)
    market.conversation(alice, bob, is_unread_seller=True)
    market.conversation(alice, bob)

    assert directory(session, alice).unread_count() == 1
    assert directory(session, bob).unread_count() == 1


def test_start_for_product_reuses_existing_conversation(session, market, alice, bob):
    product = market.product(bob)
    service = directory(session, alice)

    first, created = service.start_for_product(product.id)
    second, created_again = service.start_for_product(product.id)

    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert first.buyer_id == alice.id
    assert first.seller_id == bob.id
    assert len(session.exec(select(Conversation)).all()) == 1


def test_cannot_start_conversation_about_own_product(session, market, bob):
    product = market.product(bob)

    with pytest.raises(ValidationError):
        directory(session, bob).start_for_product(product.id)


def test_start_for_missing_product(session, alice):
    with pytest.raises(ProductNotFound):
        directory(session, alice).start_for_product("missing")


def test_start_for_item_request_makes_requester_the_buyer(session, market, alice, bob):
    request = market.item_request(alice)

    conversation, created = directory(session, bob).start_for_item_request(request.id)

    assert created is True
    assert conversation.buyer_id == alice.id
    assert conversation.seller_id == bob.id
    assert conversation.item_request_id == request.id
    assert conversation.product_id is None


def test_start_for_missing_item_request(session, bob):
    with pytest.raises(ItemRequestNotFound):
        directory(session, bob).start_for_item_request("missing")


def test_start_requires_viewer(session, market, bob):
    product = market.product(bob)

    with pytest.raises(NotAuthenticated):
        directory(session, None).start_for_product(product.id)
