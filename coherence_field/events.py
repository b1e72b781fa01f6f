"""
Field events.

Every accepted operation records what it changed as FieldEvents in a
bounded EventLog. An optional on_event callback sees each event as it
is recorded; a failing callback is logged and never aborts the operation
that produced the event.

(c) 2026 Anywave Creations
MIT License
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from itertools import islice
from typing import Any, Callable, Deque, Dict, List, Optional
import logging

log = logging.getLogger(__name__)


class EventType(Enum):
    PARTICIPANT_ENTERED = "participant_entered"
    PARTICIPANT_DECOHERED = "participant_decohered"
    PHASE_COUPLED = "phase_coupled"
    PHASE_UNCOUPLED = "phase_uncoupled"
    EMISSIONS_CLAIMED = "emissions_claimed"
    STATE_TRANSITION = "state_transition"
    GOLDEN_ACHIEVED = "golden_achieved"
    FIELD_ADVANCED = "field_advanced"
    PHASE_UPDATED = "phase_updated"
    COHERENCE_PEAK = "coherence_peak"


@dataclass
class FieldEvent:
    """A single recorded event."""
    type: EventType
    epoch: int
    participant_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'epoch': self.epoch,
            'participant_id': self.participant_id,
            'details': self.details,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class EventLog:
    """Most recent events, oldest first."""
    events: Deque[FieldEvent] = field(default_factory=deque)
    max_length: int = 500
    on_event: Optional[Callable[[FieldEvent], None]] = None

    def __post_init__(self):
        self.events = deque(self.events, maxlen=self.max_length)

    def record(self, event: FieldEvent) -> None:
        self.events.append(event)

        if self.on_event:
            try:
                self.on_event(event)
            except Exception:
                log.exception("on_event callback failed for %s", event.type.value)

    def extend(self, events: List[FieldEvent]) -> None:
        for event in events:
            self.record(event)

    def recent(self, limit: int) -> List[FieldEvent]:
        """The last `limit` events, oldest first."""
        if limit <= 0:
            return []
        return list(islice(reversed(self.events), limit))[::-1]

    def of_type(self, event_type: EventType) -> List[FieldEvent]:
        return [e for e in self.events if e.type == event_type]

    def since(self, epoch: int) -> List[FieldEvent]:
        return [e for e in self.events if e.epoch >= epoch]

    def __len__(self) -> int:
        return len(self.events)
