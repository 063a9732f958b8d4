from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import Session, select

from campustrades.errors import ConversationNotFound, NotAuthenticated, ValidationError
from campustrades.models.conversation import Conversation
from campustrades.models.message import Message
from campustrades.services.thread import ThreadService
from campustrades.utils.metrics import metrics_collector
from campustrades.utils.timefmt import utcnow
from factories import viewer


def thread(session, profile):
    return ThreadService(session, viewer(profile))


def stored_conversation(engine, conversation_id):
    with Session(engine) as fresh:
        return fresh.get(Conversation, conversation_id)


def test_buyer_message_marks_seller_unread(engine, session, market, alice, bob):
    conversation = market.conversation(alice, bob)
    before = utcnow()

    message = thread(session, alice).send_message(conversation.id, "hello")

    stored = stored_conversation(engine, conversation.id)
    assert message.content == "hello"
    assert message.sender_id == alice.id
    assert stored.is_unread_seller is True
    assert stored.is_unread_buyer is False
    assert stored.last_message_at >= before
    assert metrics_collector.get_metrics()["counters"]["messages_sent_total"] == 1


def test_seller_message_marks_buyer_unread(engine, session, market, alice, bob):
    conversation = market.conversation(alice, bob, is_important_seller=True)

    thread(session, bob).send_message(conversation.id, "Still available")

    stored = stored_conversation(engine, conversation.id)
    assert stored.is_unread_buyer is True
    assert stored.is_unread_seller is False
    assert stored.is_important_seller is True


@pytest.mark.parametrize("content", ["", "   ", "\n\t  "])
def test_blank_message_is_rejected_without_a_write(engine, session, market, alice, bob, content):
    conversation = market.conversation(alice, bob)

    with pytest.raises(ValidationError) as exc:
        thread(session, alice).send_message(conversation.id, content)

    assert exc.value.field == "content"
    with Session(engine) as fresh:
        assert fresh.exec(select(Message)).all() == []
    stored = stored_conversation(engine, conversation.id)
    assert stored.last_message_at is None
    assert stored.is_unread_seller is False


def test_message_content_is_trimmed(session, market, alice, bob):
    conversation = market.conversation(alice, bob)

    message = thread(session, alice).send_message(conversation.id, "  Can we meet at the library?  \n")

    assert message.content == "Can we meet at the library?"


def test_last_message_at_never_moves_backwards(engine, session, market, alice, bob):
    ahead = utcnow() + timedelta(hours=1)
    conversation = market.conversation(alice, bob, last_message_at=ahead)

    thread(session, bob).send_message(conversation.id, "ok")

    assert stored_conversation(engine, conversation.id).last_message_at == ahead


def test_outsider_cannot_send(session, market, alice, bob, carol):
    conversation = market.conversation(alice, bob)

    with pytest.raises(ConversationNotFound):
        thread(session, carol).send_message(conversation.id, "hi")


def test_anonymous_cannot_send(session, market, alice, bob):
    conversation = market.conversation(alice, bob)

    with pytest.raises(NotAuthenticated):
        thread(session, None).send_message(conversation.id, "hi")


def test_messages_load_oldest_first(session, market, alice, bob):
    conversation = market.conversation(alice, bob)
    start = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    market.message(conversation, bob, "second", created_at=start + timedelta(minutes=5))
    market.message(conversation, alice, "first", created_at=start)
    market.message(conversation, alice, "third", created_at=start + timedelta(minutes=9))

    contents = [m.content for m in thread(session, alice).load_messages(conversation.id)]

    assert contents == ["first", "second", "third"]


def test_load_messages_after_is_exclusive(session, market, alice, bob):
    conversation = market.conversation(alice, bob)
    start = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    market.message(conversation, alice, "first", created_at=start)
    market.message(conversation, bob, "second", created_at=start + timedelta(minutes=1))

    newer = thread(session, alice).load_messages(conversation.id, after=start)

    assert [m.content for m in newer] == ["second"]


def test_open_clears_only_the_viewer_flag(engine, session, market, alice, bob):
    conversation = market.conversation(alice, bob, is_unread_buyer=True, is_unread_seller=True)

    cleared = thread(session, bob).open(conversation.id)

    stored = stored_conversation(engine, conversation.id)
    assert cleared is True
    assert stored.is_unread_seller is False
    assert stored.is_unread_buyer is True


def test_open_when_already_read_is_a_no_op(session, market, alice, bob):
    conversation = market.conversation(alice, bob)

    assert thread(session, alice).open(conversation.id) is False


def test_conversation_thread_scenario(engine, session, market, alice, bob):
    conversation = market.conversation(alice, bob)

    thread(session, alice).send_message(conversation.id, "Is the lamp still for sale?")
    thread(session, bob).open(conversation.id)
    thread(session, bob).send_message(conversation.id, "Yes, $15")

    stored = stored_conversation(engine, conversation.id)
    assert stored.is_unread_buyer is True
    assert stored.is_unread_seller is False
    assert [m.content for m in thread(session, alice).load_messages(conversation.id)] == [
        "Is the lamp still for sale?",
        "Yes, $15",
    ]


def test_timestamps_are_stored_and_read_as_aware_utc(engine, session, market, alice, bob):
    conversation = market.conversation(alice, bob)

    message = thread(session, alice).send_message(conversation.id, "hello")

    with Session(engine) as fresh:
        stored_message = fresh.get(Message, message.id)
        stored = fresh.get(Conversation, conversation.id)
        assert stored_message.created_at.utcoffset() == timedelta(0)
        assert stored.last_message_at == stored_message.created_at


def test_naive_cursor_is_read_as_utc(session, market, alice, bob):
    conversation = market.conversation(alice, bob)
    start = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    market.message(conversation, alice, "first", created_at=start)
    market.message(conversation, bob, "second", created_at=start + timedelta(minutes=1))

    newer = thread(session, alice).load_messages(conversation.id, after=start.replace(tzinfo=None))

    assert [m.content for m in newer] == ["second"]
