"""Battle events and the synchronous event emitter.

Every sub-step of a battle (moves, attacks, damage, deaths, ...) is
emitted as an immutable BattleEvent. An EventCollector subscribed to
every type records the replay log in exact emission order.
"""

from enum import StrEnum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from .grid import Position


class EventType(StrEnum):
    """Battle event types."""

    ROUND_START = "round_start"
    MOVE = "move"
    ATTACK = "attack"
    DAMAGE = "damage"
    HEAL = "heal"
    DEATH = "death"
    ABILITY = "ability"
    BUFF = "buff"
    DEBUFF = "debuff"
    STATUS_TICK = "status_tick"
    BATTLE_END = "battle_end"


SYSTEM_ACTOR = "system"


class BattleEvent(BaseModel):
    """Append-only battle log record. Never mutated after creation."""

    round: int = Field(..., ge=0)
    type: EventType
    actor_id: str
    target_id: Optional[str] = None
    target_ids: List[str] = Field(default_factory=list)
    damage: Optional[int] = None
    healing: Optional[int] = None
    from_position: Optional[Position] = None
    to_position: Optional[Position] = None
    ability_id: Optional[str] = None
    killed_units: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True, "use_enum_values": True}


EventHandler = Callable[[BattleEvent], None]


class BattleEventEmitter:
    """
    Synchronous publish/subscribe for battle events.

    Handlers run to completion before emit() returns: handlers for the
    event's type first, then catch-all handlers, each group in
    subscription order.

    Usage:
        emitter = BattleEventEmitter()
        unsubscribe = emitter.on(EventType.DEATH, handle_death)
        emitter.emit(event)
        unsubscribe()
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._any_handlers: List[EventHandler] = []

    def on(self, event_type: str, handler: EventHandler) -> Callable[[], None]:
        """
        Subscribe to one event type.

        Returns:
            A callable that removes this subscription.
        """
        key = str(event_type)
        self._handlers.setdefault(key, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(key, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def on_any(self, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to every event type. Returns an unsubscribe callable."""
        self._any_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._any_handlers:
                self._any_handlers.remove(handler)

        return unsubscribe

    def emit(self, event: BattleEvent) -> None:
        # Copy so handlers may unsubscribe during dispatch
        for handler in list(self._handlers.get(str(event.type), [])):
            handler(event)
        for handler in list(self._any_handlers):
            handler(event)

    def clear(self) -> None:
        """Remove every subscription."""
        self._handlers.clear()
        self._any_handlers.clear()

    def handler_count(self, event_type: Optional[str] = None) -> int:
        if event_type is None:
            return sum(len(h) for h in self._handlers.values()) + len(self._any_handlers)
        return len(self._handlers.get(str(event_type), []))


class EventCollector:
    """
    Records every emitted event in order.

    Usage:
        collector = EventCollector(emitter)
        ...
        log = collector.events
    """

    def __init__(self, emitter: Optional[BattleEventEmitter] = None):
        self._events: List[BattleEvent] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        if emitter is not None:
            self.attach(emitter)

    def attach(self, emitter: BattleEventEmitter) -> None:
        self.detach()
        self._unsubscribe = emitter.on_any(self._events.append)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def events(self) -> List[BattleEvent]:
        """Copy of the collected events."""
        return list(self._events)

    def of_type(self, event_type: str) -> List[BattleEvent]:
        return [e for e in self._events if e.type == event_type]

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
