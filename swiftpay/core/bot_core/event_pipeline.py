"""Parse → render per role → dispatch, for one batch of program logs."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from swiftpay.core.event_core.event_parser import EventParser
from swiftpay.core.logging import log
from swiftpay.core.notify_core.errors import DispatchError
from swiftpay.core.notify_core.manager import NotificationManager
from swiftpay.core.notify_core.roles import is_known_role, notifiable_event_types
from swiftpay.models.events import LogContext, ParsedEvent
from swiftpay.models.message import Message, MessageRenderer


class EventPipeline:
    def __init__(
        self,
        parser: EventParser,
        renderer: MessageRenderer,
        manager: NotificationManager,
    ) -> None:
        self.parser = parser
        self.renderer = renderer
        self.manager = manager
        self.events_processed = 0
        self.notifications_sent = 0

    async def process_logs(
        self, log_lines: Sequence[str], context: Optional[LogContext] = None
    ) -> List[str]:
        """Handle every event in one transaction's logs; return delivered targets.

        A failing event is logged and does not stop the ones after it.
        """
        self.events_processed += 1
        delivered: List[str] = []
        for event in self.parser.parse_logs_for_events(log_lines, context):
            try:
                delivered.extend(await self.handle_event(event))
            except DispatchError as exc:
                delivered.extend(exc.delivered)
                log.error(
                    f"{event.event_type} {event.signature}: {len(exc.errors)} dispatch fault(s)",
                    source="EventPipeline",
                )
        return delivered

    def render_messages(self, event: ParsedEvent) -> Dict[str, Message]:
        messages: Dict[str, Message] = {}
        for role in event.participants:
            if not is_known_role(role):
                continue
            try:
                message = self.renderer.render(event.event_type, event.data, role)
            except Exception as exc:  # noqa: BLE001
                log.error(
                    f"Rendering {event.event_type} for {role} failed: {exc}",
                    source="EventPipeline",
                )
                continue
            if message is not None:
                messages[role] = message
        return messages

    async def handle_event(self, event: ParsedEvent) -> List[str]:
        if not event.has_participants:
            log.info(f"No participants for {event.event_type}", source="EventPipeline")
            return []
        if event.event_type not in notifiable_event_types():
            log.info(f"Not notifying for {event.event_type}", source="EventPipeline")
            return []
        try:
            delivered = await self.manager.dispatch(event, self.render_messages(event))
        except DispatchError as exc:
            self.notifications_sent += len(exc.delivered)
            raise
        self.notifications_sent += len(delivered)
        log.info(
            f"{event.event_type} ({event.source}) delivered to {len(delivered)} target(s)",
            source="EventPipeline",
        )
        return delivered


__all__ = ["EventPipeline"]
