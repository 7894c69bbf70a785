"""Turn one transaction's program logs into :class:`ParsedEvent` records."""

from __future__ import annotations

import re
import time
from typing import Callable, Dict, List, Optional, Sequence

from swiftpay.core.core_constants import PROGRAM_DATA_MARKER
from swiftpay.core.logging import log
from swiftpay.models.events import DecodedEvent, LogContext, ParsedEvent

from .decoder import decode_program_data
from .heuristics import (
    INSTRUCTION_RULES,
    extract_event_data,
    extract_participants,
    extract_vault_address,
)

_INSTRUCTION_RE = re.compile(r"Instruction: (\w+)")


def _drop_empty(role_map: Dict[str, Optional[str]]) -> Dict[str, str]:
    return {role: address for role, address in role_map.items() if address}


class EventParser:
    """Binary payload first; log-text heuristics only when no payload decodes.

    ``decimals`` is the mint decimal count used for display fields; ``clock``
    returns seconds and is only used for placeholder signatures.
    """

    def __init__(
        self,
        decimals: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.decimals = decimals
        self._clock = clock

    def parse_logs_for_events(
        self, log_lines: Sequence[str], context: Optional[LogContext] = None
    ) -> List[ParsedEvent]:
        context = context or LogContext()
        lines = list(log_lines or [])
        signature = context.signature or f"temp_{int(self._clock() * 1000)}"

        decoded = self._decode_first_payload(lines)
        if decoded is not None:
            return [self._from_decoded(decoded, signature, context)]

        log.debug(
            f"no decodable program data in {len(lines)} log lines; using log-text fallback",
            source="EventParser",
            payload=context.signature,
        )
        return self._from_instructions(lines, signature, context)

    # ------------------------------------------------------------------
    # Binary path
    # ------------------------------------------------------------------
    def _decode_first_payload(self, lines: Sequence[str]) -> Optional[DecodedEvent]:
        for line in lines:
            idx = line.find(PROGRAM_DATA_MARKER)
            if idx < 0:
                continue
            decoded = decode_program_data(line[idx + len(PROGRAM_DATA_MARKER) :])
            if decoded is not None:
                return decoded
        return None

    def _from_decoded(
        self, decoded: DecodedEvent, signature: str, context: LogContext
    ) -> ParsedEvent:
        return ParsedEvent(
            event_type=decoded.event_type.value,
            signature=signature,
            participants=_drop_empty(decoded.participants()),
            data=decoded.to_data(self.decimals),
            vault=decoded.swift_pay,
            source="binary",
            block_time=context.block_time,
        )

    # ------------------------------------------------------------------
    # Heuristic path
    # ------------------------------------------------------------------
    def _from_instructions(
        self, lines: Sequence[str], signature: str, context: LogContext
    ) -> List[ParsedEvent]:
        events: List[ParsedEvent] = []
        for line in lines:
            match = _INSTRUCTION_RE.search(line)
            if not match:
                continue
            name = match.group(1)
            rule = INSTRUCTION_RULES.get(name)
            if rule is None:
                continue
            role_map = extract_participants(lines, name, context)
            participants = _drop_empty(role_map or {})
            if not participants:
                log.debug(f"{name}: no participants recovered", source="EventParser")
                continue

            vault = extract_vault_address(lines, context)
            data = extract_event_data(rule.event_type, lines, self.decimals)
            data.update(participants)
            data["swift_pay"] = vault
            events.append(
                ParsedEvent(
                    event_type=rule.event_type,
                    signature=signature,
                    participants=participants,
                    data=data,
                    vault=vault,
                    source="heuristic",
                    block_time=context.block_time,
                )
            )
        return events


def parse_logs_for_events(
    log_lines: Sequence[str], context: Optional[LogContext] = None
) -> List[ParsedEvent]:
    """Convenience wrapper using default decimals."""
    return EventParser().parse_logs_for_events(log_lines, context)


__all__ = ["EventParser", "parse_logs_for_events"]
