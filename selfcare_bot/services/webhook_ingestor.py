"""Unpack webhook batches and route every event through the policy.

The ingestor does no I/O. It turns a verified batch into a list of
dispatches (event plus the actions decided for it); the HTTP handler
schedules their delivery and acknowledges the batch. A problem with one
event is logged and skipped, so it can never cost the batch its
acknowledgment.
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

import logfire
from pydantic import ValidationError

from selfcare_bot.constants import PAGE_OBJECT_TYPE
from selfcare_bot.errors import MalformedEventError
from selfcare_bot.models.events import IncomingEvent
from selfcare_bot.models.messenger import MessengerEntry, MessengerWebhookPayload
from selfcare_bot.models.outbound import OutboundAction
from selfcare_bot.services.conversation_policy import (
    ConversationPolicy,
    get_conversation_policy,
)
from selfcare_bot.services.event_classifier import classify

logger = logging.getLogger(__name__)


class EventDispatch(NamedTuple):
    """One classified event and the actions decided for it."""

    page_id: str
    event: IncomingEvent
    actions: list[OutboundAction]


class IngestResult(NamedTuple):
    """Outcome of ingesting one batch.

    Attributes:
        recognized: False when the batch is not a page subscription.
        dispatches: Per-event decisions, in batch order.
        dropped: Number of entries and events skipped as malformed or failed.
    """

    recognized: bool
    dispatches: list[EventDispatch]
    dropped: int = 0

    @property
    def action_count(self) -> int:
        return sum(len(dispatch.actions) for dispatch in self.dispatches)


class WebhookIngestor:
    """Route every event of a webhook batch through classifier and policy.

    Example:
        >>> ingestor = WebhookIngestor(policy=ConversationPolicy("https://bot.example.com"))
        >>> result = ingestor.ingest(MessengerWebhookPayload.model_validate(body))
        >>> [d.event.kind for d in result.dispatches]
        ['message']
    """

    def __init__(self, policy: ConversationPolicy | None = None):
        """Initialize the ingestor.

        Args:
            policy: Conversation policy. Uses get_conversation_policy() if
                    not provided.
        """
        self._policy = policy

    def _get_policy(self) -> ConversationPolicy:
        if self._policy is None:
            self._policy = get_conversation_policy()
        return self._policy

    def ingest(self, payload: MessengerWebhookPayload) -> IngestResult:
        """Classify and route every event of a batch, in order.

        Args:
            payload: Parsed webhook body (signature already verified)

        Returns:
            IngestResult; ``recognized`` is False for non-page objects
        """
        if payload.object != PAGE_OBJECT_TYPE:
            logfire.warning(
                "Ignoring webhook for unsubscribed object type",
                object_type=payload.object,
            )
            return IngestResult(recognized=False, dispatches=[])

        dispatches: list[EventDispatch] = []
        dropped = 0

        # There may be multiple entries if batched
        for raw_entry in payload.entry:
            entry = self._parse_entry(raw_entry)
            if entry is None:
                dropped += 1
                continue
            for raw_event in entry.messaging:
                dispatch = self._route(entry.id, raw_event)
                if dispatch is None:
                    dropped += 1
                else:
                    dispatches.append(dispatch)

        result = IngestResult(recognized=True, dispatches=dispatches, dropped=dropped)
        logfire.info(
            "Webhook batch ingested",
            entries=len(payload.entry),
            events=len(dispatches),
            dropped=dropped,
            actions=result.action_count,
        )
        return result

    def _parse_entry(self, raw_entry: Any) -> MessengerEntry | None:
        try:
            return MessengerEntry.model_validate(raw_entry)
        except ValidationError as e:
            logfire.warning(
                "Dropping malformed webhook entry",
                error_count=e.error_count(),
            )
            return None

    def _route(self, page_id: str, raw_event: Any) -> EventDispatch | None:
        try:
            event = classify(raw_event)
            actions = self._get_policy().decide(event)
        except MalformedEventError as e:
            logfire.warning(
                "Dropping malformed messaging event",
                page_id=page_id,
                error=str(e),
            )
            return None
        except Exception as e:
            logger.error("Error routing messaging event: %s", e, exc_info=True)
            return None

        return EventDispatch(page_id=page_id, event=event, actions=actions)


def get_webhook_ingestor(policy: ConversationPolicy | None = None) -> WebhookIngestor:
    """Factory function to create a WebhookIngestor instance.

    Args:
        policy: Optional conversation policy

    Returns:
        Configured WebhookIngestor instance
    """
    return WebhookIngestor(policy=policy)
