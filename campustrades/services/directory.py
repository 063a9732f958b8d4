"""
Conversation Directory Service

Lists the viewer's conversations (as buyer or seller), decorated for display,
counts unread ones for the badge, and starts new conversations with
deduplication.
"""

from typing import Dict, Iterable, List, Optional, Tuple
import logging

from sqlalchemy import and_, func, or_
from sqlmodel import select

from campustrades.errors import ItemRequestNotFound, ProductNotFound, ValidationError
from campustrades.models.conversation import Conversation, flag_column
from campustrades.models.message import Message
from campustrades.models.product import ItemRequest, Product
from campustrades.models.profile import Profile
from campustrades.schemas.conversation import (
    ConversationSummary,
    LastMessage,
    ListingSummary,
    ProfileSummary,
)
from campustrades.services.base import ViewerService
from campustrades.utils.logger import event_logger
from campustrades.utils.metrics import metrics_collector
from campustrades.viewer import Flag, Role

logger = logging.getLogger(__name__)

FILTER_ALL = "all"
FILTER_UNREAD = "unread"
FILTER_IMPORTANT = "important"
DIRECTORY_FILTERS = (FILTER_ALL, FILTER_UNREAD, FILTER_IMPORTANT)


def participant_clause(user_id: str):
    return or_(Conversation.buyer_id == user_id, Conversation.seller_id == user_id)


def well_formed_clause():
    """Exactly one of product_id / item_request_id is set."""
    return or_(
        and_(Conversation.product_id.is_not(None), Conversation.item_request_id.is_(None)),
        and_(Conversation.product_id.is_(None), Conversation.item_request_id.is_not(None)),
    )


def viewer_flag_clause(user_id: str, flag: Flag):
    """Rows where ``flag`` is set for the role ``user_id`` holds (buyer wins)."""
    buyer_column = getattr(Conversation, flag_column(flag, Role.BUYER))
    seller_column = getattr(Conversation, flag_column(flag, Role.SELLER))
    return or_(
        and_(Conversation.buyer_id == user_id, buyer_column == True),  # noqa: E712
        and_(
            Conversation.buyer_id != user_id,
            Conversation.seller_id == user_id,
            seller_column == True,  # noqa: E712
        ),
    )


class ConversationDirectoryService(ViewerService):
    """Read side of the viewer's inbox."""

    def list_conversations(self, filter_type: str = FILTER_ALL) -> List[ConversationSummary]:
        """
        Get the viewer's conversations, most recent message first.

        Conversations without any message sort after those with one.

        Args:
            filter_type: all, unread or important (viewer-role flag must be set)

        Returns:
            Decorated conversation summaries; empty when there is no viewer
        """
        if filter_type not in DIRECTORY_FILTERS:
            raise ValidationError(
                f"Unknown filter '{filter_type}'. Use one of: {', '.join(DIRECTORY_FILTERS)}",
                field="filter",
            )
        if not self.viewer.is_authenticated:
            return []

        user_id = self.viewer.user_id
        statement = select(Conversation).where(participant_clause(user_id), well_formed_clause())
        if filter_type == FILTER_UNREAD:
            statement = statement.where(viewer_flag_clause(user_id, Flag.UNREAD))
        elif filter_type == FILTER_IMPORTANT:
            statement = statement.where(viewer_flag_clause(user_id, Flag.IMPORTANT))

        statement = statement.order_by(
            Conversation.last_message_at.desc().nullslast(),
            Conversation.created_at.desc(),
        )

        with self.backend("load conversations"):
            conversations = list(self.session.exec(statement).all())
            return self._decorate(conversations)

    def get_conversation(self, conversation_id: str) -> ConversationSummary:
        """Get one decorated conversation the viewer takes part in."""
        conversation, _ = self.participant_conversation(conversation_id)
        with self.backend("load conversation"):
            return self._decorate([conversation])[0]

    def unread_count(self) -> int:
        """Number of conversations whose viewer-role unread flag is set."""
        if not self.viewer.is_authenticated:
            return 0

        user_id = self.viewer.user_id
        statement = (
            select(func.count())
            .select_from(Conversation)
            .where(
                participant_clause(user_id),
                well_formed_clause(),
                viewer_flag_clause(user_id, Flag.UNREAD),
            )
        )
        with self.backend("count unread conversations"):
            return int(self.session.exec(statement).one())

    def start_for_product(self, product_id: str) -> Tuple[Conversation, bool]:
        """
        Contact the seller of a product, reusing an existing conversation.

        Returns:
            (conversation, created)
        """
        viewer_id = self.viewer.require()
        with self.backend("load product"):
            product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFound(product_id)
        if product.seller_id == viewer_id:
            raise ValidationError("You cannot start a conversation about your own listing", field="product_id")

        return self._get_or_create(
            buyer_id=viewer_id,
            seller_id=product.seller_id,
            product_id=product.id,
        )

    def start_for_item_request(self, item_request_id: str) -> Tuple[Conversation, bool]:
        """
        Offer to fulfil an item request: the requester is the buyer and the
        viewer is the seller.

        Returns:
            (conversation, created)
        """
        viewer_id = self.viewer.require()
        with self.backend("load item request"):
            item_request = self.session.get(ItemRequest, item_request_id)
        if item_request is None:
            raise ItemRequestNotFound(item_request_id)
        if item_request.requester_id == viewer_id:
            raise ValidationError("You cannot respond to your own request", field="item_request_id")

        return self._get_or_create(
            buyer_id=item_request.requester_id,
            seller_id=viewer_id,
            item_request_id=item_request.id,
        )

    def _get_or_create(
        self,
        buyer_id: str,
        seller_id: str,
        product_id: Optional[str] = None,
        item_request_id: Optional[str] = None,
    ) -> Tuple[Conversation, bool]:
        statement = select(Conversation).where(
            Conversation.buyer_id == buyer_id,
            Conversation.seller_id == seller_id,
        )
        if product_id is not None:
            statement = statement.where(Conversation.product_id == product_id)
        else:
            statement = statement.where(Conversation.item_request_id == item_request_id)

        with self.backend("start conversation"):
            existing = self.session.exec(statement).first()
            if existing:
                return existing, False

            conversation = Conversation(
                buyer_id=buyer_id,
                seller_id=seller_id,
                product_id=product_id,
                item_request_id=item_request_id,
            )
            self.session.add(conversation)
            self.session.commit()
            self.session.refresh(conversation)

        metrics_collector.increment_counter("conversations_started_total")
        event_logger.info(
            "conversation.started",
            conversation_id=conversation.id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            product_id=product_id,
            item_request_id=item_request_id,
        )
        return conversation, True

    def _decorate(self, conversations: List[Conversation]) -> List[ConversationSummary]:
        """Attach counterpart profile, listing summary and last message."""
        if not conversations:
            return []

        user_id = self.viewer.user_id
        roles = {c.id: self.viewer.role_in(c.buyer_id, c.seller_id) for c in conversations}

        profiles = self._load_by_id(Profile, (c.counterpart_id(roles[c.id]) for c in conversations))
        products = self._load_by_id(Product, (c.product_id for c in conversations if c.product_id))
        item_requests = self._load_by_id(
            ItemRequest, (c.item_request_id for c in conversations if c.item_request_id)
        )

        summaries = []
        for conversation in conversations:
            role = roles[conversation.id]
            counterpart = profiles.get(conversation.counterpart_id(role))
            last_message = self.session.exec(
                select(Message)
                .where(Message.conversation_id == conversation.id)
                .order_by(Message.created_at.desc())
                .limit(1)
            ).first()

            summaries.append(ConversationSummary(
                id=conversation.id,
                buyer_id=conversation.buyer_id,
                seller_id=conversation.seller_id,
                product_id=conversation.product_id,
                item_request_id=conversation.item_request_id,
                last_message_at=conversation.last_message_at,
                created_at=conversation.created_at,
                unread_for_buyer=conversation.is_unread_buyer,
                unread_for_seller=conversation.is_unread_seller,
                important_for_buyer=conversation.is_important_buyer,
                important_for_seller=conversation.is_important_seller,
                role=role,
                is_unread=conversation.get_flag(Flag.UNREAD, role),
                is_important=conversation.get_flag(Flag.IMPORTANT, role),
                counterpart=ProfileSummary(
                    id=counterpart.id,
                    full_name=counterpart.full_name,
                    avatar_url=counterpart.avatar_url,
                ) if counterpart else None,
                listing=self._listing_summary(conversation, products, item_requests),
                last_message=LastMessage(
                    content=last_message.content,
                    created_at=last_message.created_at,
                ) if last_message else None,
            ))

        logger.debug(f"Decorated {len(summaries)} conversations for user {user_id}")
        return summaries

    def _load_by_id(self, model, ids: Iterable[str]) -> Dict[str, object]:
        wanted = set(ids)
        if not wanted:
            return {}
        rows = self.session.exec(select(model).where(model.id.in_(wanted))).all()
        return {row.id: row for row in rows}

    @staticmethod
    def _listing_summary(conversation: Conversation, products, item_requests) -> Optional[ListingSummary]:
        if conversation.product_id:
            product = products.get(conversation.product_id)
            if product is None:
                return None
            return ListingSummary(
                kind="product",
                id=product.id,
                title=product.title,
                price=product.price,
                image_url=product.image_urls[0] if product.image_urls else None,
            )
        item_request = item_requests.get(conversation.item_request_id)
        if item_request is None:
            return None
        return ListingSummary(kind="item_request", id=item_request.id, title=item_request.title)
