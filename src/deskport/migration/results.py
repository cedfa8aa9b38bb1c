"""
Result types for the migration engine.

Every unit of work (conversation, message, attachment, reaction, mention,
quote) ends as a ``UnitResult`` that is either INSERTED or SKIPPED. Results
flow up to the driver, which aggregates them into a ``RunSummary``.
"""

import enum
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional


class Unit(str, enum.Enum):
    """Kind of migrated entity."""

    CONVERSATION = "conversation"
    MESSAGE = "message"
    ATTACHMENT = "attachment"
    REACTION = "reaction"
    MENTION = "mention"
    QUOTE = "quote"


class Outcome(str, enum.Enum):
    """What happened to a unit of work."""

    INSERTED = "inserted"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class UnitResult:
    """Outcome of one unit of work."""

    unit: Unit
    outcome: Outcome
    reason: Optional[str] = None
    target_id: Optional[int] = None

    @classmethod
    def inserted(cls, unit: Unit, target_id: Optional[int] = None) -> "UnitResult":
        return cls(unit=unit, outcome=Outcome.INSERTED, target_id=target_id)

    @classmethod
    def skipped(cls, unit: Unit, reason: str) -> "UnitResult":
        return cls(unit=unit, outcome=Outcome.SKIPPED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.INSERTED


@dataclass
class MatchResult:
    """Result of matching a desktop conversation to a target thread."""

    conversation_id: str
    key: Optional[str] = None
    thread_id: Optional[int] = None
    reason: Optional[str] = None
    candidates: int = 0

    @property
    def matched(self) -> bool:
        return self.thread_id is not None


@dataclass
class MessageOutcome:
    """Result of routing one desktop message."""

    rowid: int
    result: UnitResult
    extended: Optional[bool] = None  # None when skipped before the decision
    children: list[UnitResult] = field(default_factory=list)


@dataclass
class ConversationOutcome:
    """Result of migrating one desktop conversation."""

    match: MatchResult
    messages: list[MessageOutcome] = field(default_factory=list)


@dataclass
class RunSummary:
    """Aggregated counts for a migration run."""

    counts: Counter = field(default_factory=Counter)
    skip_reasons: Counter = field(default_factory=Counter)
    simple_messages: int = 0
    extended_messages: int = 0
    completed: bool = False

    def record(self, result: UnitResult) -> None:
        self.counts[(result.unit, result.outcome)] += 1
        if result.outcome is Outcome.SKIPPED and result.reason:
            self.skip_reasons[(result.unit, result.reason)] += 1

    def add_message(self, outcome: MessageOutcome) -> None:
        self.record(outcome.result)
        if outcome.result.ok:
            if outcome.extended:
                self.extended_messages += 1
            else:
                self.simple_messages += 1
        for child in outcome.children:
            self.record(child)

    def add_conversation(self, outcome: ConversationOutcome) -> None:
        if outcome.match.matched:
            self.record(UnitResult.inserted(Unit.CONVERSATION, outcome.match.thread_id))
        else:
            self.record(
                UnitResult.skipped(Unit.CONVERSATION, outcome.match.reason or "unmatched")
            )
        for message in outcome.messages:
            self.add_message(message)

    def inserted(self, unit: Unit) -> int:
        return self.counts[(unit, Outcome.INSERTED)]

    def skipped(self, unit: Unit) -> int:
        return self.counts[(unit, Outcome.SKIPPED)]

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped(unit) for unit in Unit)

    @property
    def has_skips(self) -> bool:
        return self.total_skipped > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "completed": self.completed,
            "simple_messages": self.simple_messages,
            "extended_messages": self.extended_messages,
            "units": {
                unit.value: {
                    "inserted": self.inserted(unit),
                    "skipped": self.skipped(unit),
                }
                for unit in Unit
            },
            "skip_reasons": {
                f"{unit.value}:{reason}": count
                for (unit, reason), count in sorted(self.skip_reasons.items())
            },
        }
