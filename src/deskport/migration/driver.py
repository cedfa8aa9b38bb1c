"""
Migration driver.

Walks every desktop conversation, matches it to a target thread and routes
its messages in row order. Once started, a run never raises: every problem
below the fatal startup checks becomes a skipped unit in the summary.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy.orm import Session

from deskport.db.repositories import (
    DesktopRepository,
    MentionRepository,
    MmsMessageRepository,
    PartRepository,
    ReactionRepository,
    RecipientRepository,
    SmsMessageRepository,
    ThreadRepository,
)
from deskport.migration.attachments import (
    AttachmentImporter,
    AttachmentProbe,
    FileAttachmentProbe,
)
from deskport.migration.identity import (
    IdentityResolver,
    RecipientCache,
    RecipientProvider,
)
from deskport.migration.matcher import ConversationMatcher
from deskport.migration.mentions import MentionImporter
from deskport.migration.payloads import AttachmentPayloadRegistry, PayloadRegistry
from deskport.migration.quotes import QuoteResolver
from deskport.migration.reactions import ReactionImporter, ReactionResolver
from deskport.migration.results import (
    ConversationOutcome,
    MatchResult,
    MessageOutcome,
    RunSummary,
    Unit,
    UnitResult,
)
from deskport.migration.router import MessageContext, MessageRouter
from deskport.models.parsed import DesktopConversation
from deskport.parsers import ParserError, parse_conversation, parse_message

logger = logging.getLogger(__name__)


class MigrationDriver:
    """
    Run a complete migration from a desktop session into a target session.

    Collaborators default to the database-backed implementations; tests and
    callers may pass their own.
    """

    def __init__(
        self,
        source: Session,
        target: Session,
        attachments_dir: Optional[Path] = None,
        provider: Optional[RecipientProvider] = None,
        probe: Optional[AttachmentProbe] = None,
        registry: Optional[PayloadRegistry] = None,
        create_missing_recipients: bool = False,
    ):
        self.desktop = DesktopRepository(source)
        if registry is None:
            registry = AttachmentPayloadRegistry()
        self.registry = registry

        if provider is None:
            provider = RecipientRepository(
                target, create_missing=create_missing_recipients
            )
        self.identities = IdentityResolver(provider)
        self.matcher = ConversationMatcher(ThreadRepository(target))
        self.reaction_resolver = ReactionResolver(self.identities)
        self.router = MessageRouter(
            identities=self.identities,
            sms=SmsMessageRepository(target),
            mms=MmsMessageRepository(target),
            quotes=QuoteResolver(self.identities),
            attachments=AttachmentImporter(
                PartRepository(target),
                probe or FileAttachmentProbe(),
                self.registry,
                attachments_dir,
            ),
            reaction_resolver=self.reaction_resolver,
            reactions=ReactionImporter(ReactionRepository(target)),
            mentions=MentionImporter(MentionRepository(target), self.identities),
        )

    def conversations(self) -> Iterator[DesktopConversation]:
        """
        Yield the desktop conversations that have messages, in rowid order.

        Rows whose document cannot be parsed are logged and left out.
        """
        for row in self.desktop.list_conversation_rows():
            try:
                conversation = parse_conversation(row)
            except ParserError as e:
                logger.warning(f"Conversation {row.get('id')}: {e}, skipping")
                continue
            if conversation.message_count <= 0:
                logger.debug(f"Conversation {conversation.id} has no messages")
                continue
            yield conversation

    def match_all(self) -> list[tuple[DesktopConversation, MatchResult]]:
        """Match every conversation without writing anything."""
        return [
            (conversation, self.matcher.match(conversation))
            for conversation in self.conversations()
        ]

    def migrate_conversation(
        self, conversation: DesktopConversation
    ) -> ConversationOutcome:
        """
        Migrate one conversation.

        Args:
            conversation: Parsed desktop conversation

        Returns:
            ConversationOutcome with the match and per-message outcomes
        """
        match = self.matcher.match(conversation)
        outcome = ConversationOutcome(match=match)
        if not match.matched:
            return outcome

        context = MessageContext(
            conversation=conversation,
            thread_id=match.thread_id,
            key=match.key,
            cache=RecipientCache(),
        )

        for row in self.desktop.list_message_rows(conversation.id):
            try:
                message = parse_message(row)
            except ParserError as e:
                logger.warning(
                    f"Conversation {conversation.id}: message {row.get('rowid')}: "
                    f"{e}, skipping"
                )
                outcome.messages.append(
                    MessageOutcome(
                        rowid=row.get("rowid", 0),
                        result=UnitResult.skipped(Unit.MESSAGE, "malformed-document"),
                    )
                )
                continue
            try:
                outcome.messages.append(self.router.route(message, context))
            except Exception as e:
                logger.error(
                    f"Conversation {conversation.id}: message {message.rowid} "
                    f"failed unexpectedly: {e}",
                    exc_info=True,
                )
                outcome.messages.append(
                    MessageOutcome(
                        rowid=message.rowid,
                        result=UnitResult.skipped(Unit.MESSAGE, "unexpected-error"),
                    )
                )

        migrated = sum(1 for m in outcome.messages if m.result.ok)
        logger.info(
            f"Conversation {conversation.id}: migrated {migrated} of "
            f"{len(outcome.messages)} messages into thread {match.thread_id}"
        )
        return outcome

    def run(self) -> RunSummary:
        """
        Migrate all conversations.

        Returns:
            RunSummary with ``completed`` set
        """
        summary = RunSummary()
        self.reaction_resolver.aliases = self.desktop.conversation_identities()

        for conversation in self.conversations():
            try:
                outcome = self.migrate_conversation(conversation)
            except Exception as e:
                logger.error(
                    f"Conversation {conversation.id} failed unexpectedly: {e}",
                    exc_info=True,
                )
                summary.record(
                    UnitResult.skipped(Unit.CONVERSATION, "unexpected-error")
                )
                continue
            summary.add_conversation(outcome)

        summary.completed = True
        logger.info(
            f"Migration finished: {summary.simple_messages} simple and "
            f"{summary.extended_messages} extended messages, "
            f"{summary.total_skipped} units skipped"
        )
        return summary
