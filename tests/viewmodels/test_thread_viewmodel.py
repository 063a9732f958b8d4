from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import Session

from campustrades.errors import ValidationError
from campustrades.models.conversation import Conversation
from campustrades.viewmodels import InboxViewModel, ThreadViewModel
from factories import viewer


def stored(engine, conversation_id):
    with Session(engine) as fresh:
        return fresh.get(Conversation, conversation_id)


@pytest.mark.asyncio
async def test_open_marks_read_and_updates_inbox(engine, session_factory, market, alice, bob):
    conversation = market.conversation(alice, bob, is_unread_seller=True)
    market.message(conversation, alice, "Is the lamp still for sale?")
    inbox = InboxViewModel(viewer(bob), session_factory)
    await inbox.load()
    await inbox.unread.refresh()
    assert inbox.unread.count == 1

    thread = ThreadViewModel(viewer(bob), conversation.id, session_factory, inbox=inbox, poll_interval=60)
    cleared = await thread.open()
    await thread.close()

    assert cleared is True
    assert [m.content for m in thread.messages] == ["Is the lamp still for sale?"]
    assert inbox.unread.count == 0
    assert inbox.find(conversation.id).is_unread is False
    assert stored(engine, conversation.id).is_unread_seller is False


@pytest.mark.asyncio
async def test_send_appends_and_clears_draft(engine, session_factory, market, alice, bob):
    conversation = market.conversation(alice, bob)
    thread = ThreadViewModel(viewer(alice), conversation.id, session_factory, poll_interval=60)
    await thread.open()
    await thread.close()

    thread.draft = "  hello  "
    assert thread.can_send is True
    message = await thread.send()

    assert message.content == "hello"
    assert thread.draft == ""
    assert [m.id for m in thread.messages] == [message.id]
    assert stored(engine, conversation.id).is_unread_seller is True


@pytest.mark.asyncio
async def test_blank_draft_cannot_be_sent(session_factory, market, alice, bob):
    conversation = market.conversation(alice, bob)
    thread = ThreadViewModel(viewer(alice), conversation.id, session_factory)
    thread.draft = "   "

    assert thread.can_send is False
    with pytest.raises(ValidationError):
        await thread.send()
    assert thread.draft == "   "
    assert thread.messages == []


@pytest.mark.asyncio
async def test_refresh_picks_up_reply_and_marks_read(engine, session_factory, market, alice, bob):
    conversation = market.conversation(alice, bob)
    market.message(conversation, alice, "Hi", created_at=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
    thread = ThreadViewModel(viewer(alice), conversation.id, session_factory, poll_interval=60)
    await thread.open()
    await thread.close()

    bob_thread = ThreadViewModel(viewer(bob), conversation.id, session_factory)
    await bob_thread.send("Hello!")
    assert stored(engine, conversation.id).is_unread_buyer is True

    newer = await thread.refresh()

    assert [m.content for m in newer] == ["Hello!"]
    assert [m.content for m in thread.messages] == ["Hi", "Hello!"]
    assert stored(engine, conversation.id).is_unread_buyer is False


@pytest.mark.asyncio
async def test_own_messages_do_not_duplicate_on_refresh(session_factory, market, alice, bob):
    conversation = market.conversation(alice, bob)
    thread = ThreadViewModel(viewer(alice), conversation.id, session_factory)

    await thread.send("one")
    await thread.refresh()

    assert [m.content for m in thread.messages] == ["one"]


@pytest.mark.asyncio
async def test_display_times(session_factory, market, alice, bob):
    conversation = market.conversation(alice, bob)
    market.message(conversation, bob, "Morning", created_at=datetime(2026, 3, 10, 8, 5, tzinfo=timezone.utc))
    market.message(conversation, alice, "Just now", created_at=datetime(2026, 3, 10, 15, 29, 30, tzinfo=timezone.utc))
    thread = ThreadViewModel(viewer(alice), conversation.id, session_factory, poll_interval=60)
    await thread.open()
    await thread.close()

    labels = [label for _, label in thread.display_times(now=datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc))]

    assert labels == ["08:05", "now"]


@pytest.mark.asyncio
async def test_refresh_finds_reply_committed_after_a_newer_message(session_factory, market, alice, bob):
    conversation = market.conversation(alice, bob)
    thread = ThreadViewModel(viewer(alice), conversation.id, session_factory, poll_interval=60)
    await thread.open()
    await thread.close()

    mine = await thread.send("are you there?")
    # stamped before alice's message, saved after it
    market.message(conversation, bob, "yes!", created_at=mine.created_at - timedelta(milliseconds=5))

    newer = await thread.refresh()
    again = await thread.refresh()

    assert [m.content for m in newer] == ["yes!"]
    assert again == []
    assert [m.content for m in thread.messages] == ["yes!", "are you there?"]
