"""Log-text fallback for transactions without a decodable ``Program data`` line.

Best effort only. Every strategy here guesses from free text, so the binary
decoder always wins when it produces an event. Candidates must pass
:func:`is_participant_address`; infrastructure ids and the emitting program
are never returned as participants.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence

from swiftpay.core.logging import log
from swiftpay.models.events import LogContext
from swiftpay.utils.formatting import format_token_amount

from .addresses import ADDRESS_TOKEN_RE, is_participant_address

_ADDR = r"\b([1-9A-HJ-NP-Za-km-z]{32,44})\b"

STRATEGY_ROLE = "role"
STRATEGY_CANCELLATION = "cancellation"
STRATEGY_INSTANT_PAYMENT = "instant_payment"

RoleMap = Dict[str, Optional[str]]


@dataclass(frozen=True)
class InstructionRule:
    event_type: str
    strategy: str
    role: str


INSTRUCTION_RULES: Dict[str, InstructionRule] = {
    "Make": InstructionRule("SwiftPayCreatedEvent", STRATEGY_ROLE, "seller"),
    "CreateBuyOrder": InstructionRule("BuyOrderCreatedEvent", STRATEGY_ROLE, "buyer"),
    "UpdatePrice": InstructionRule("PriceUpdatedEvent", STRATEGY_ROLE, "seller"),
    "CancelOrReduceBuyOrder": InstructionRule(
        "BuyOrderReducedEvent", STRATEGY_CANCELLATION, "buyer"
    ),
    "InstantReserve": InstructionRule(
        "InstantPaymentReservedEvent", STRATEGY_INSTANT_PAYMENT, "taker"
    ),
    "ConfirmPayout": InstructionRule(
        "InstantPaymentPayoutResultEvent", STRATEGY_INSTANT_PAYMENT, "taker"
    ),
}

SIGNER_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"signer[:\s]+" + _ADDR, re.I),
    re.compile(r"authority[:\s]+" + _ADDR, re.I),
    re.compile(r"Program\s+log:\s+signer[:\s]+" + _ADDR, re.I),
)

CANCELLATION_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"cancelled.*?by[:\s]+" + _ADDR, re.I),
    re.compile(r"initiator[:\s]+" + _ADDR, re.I),
    re.compile(r"buyer[:\s]+" + _ADDR, re.I),
    re.compile(r"seller[:\s]+" + _ADDR, re.I),
)

MAKER_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"maker[:\s]+" + _ADDR, re.I),
    re.compile(r"liquidity.*?provider[:\s]+" + _ADDR, re.I),
    re.compile(r"platform[:\s]+" + _ADDR, re.I),
)

TAKER_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"taker[:\s]+" + _ADDR, re.I),
    re.compile(r"user[:\s]+" + _ADDR, re.I),
)

_AMOUNT_RE = re.compile(r"amount[:\s]+(\d+)", re.I)
_FIAT_RE = re.compile(r"fiat[:\s]+(\d+)", re.I)
_CURRENCY_RE = re.compile(r"currency[:\s]+([A-Z]{3})\b", re.I)
_PRICE_RE = re.compile(r"price[:\s]+(\d+)", re.I)
_MINT_RE = re.compile(r"mint[:\s]+" + _ADDR, re.I)
_REFUND_RE = re.compile(r"Refund Amount: (\d+), Fee Refund: (\d+)")
_DISPUTE_ID_RE = re.compile(r"dispute.*?id[:\s]+([A-Z0-9]+)", re.I)
_DISPUTE_REASON_RE = re.compile(r"reason[:\s]+([^,\n]+)", re.I)
_VAULT_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"trust.*?vault[:\s]+" + _ADDR, re.I),
    re.compile(r"swift.?pay[:\s]+" + _ADDR, re.I),
)


def _role_patterns(role: str) -> List[Pattern[str]]:
    name = re.escape(role)
    return [
        re.compile(name + r"[:\s]+" + _ADDR, re.I),
        re.compile(r"Program\s+log:\s+" + name + r"[:\s]+" + _ADDR, re.I),
        re.compile(name + r".*?" + _ADDR, re.I),
    ]


def _first_match(
    lines: Iterable[str], patterns: Sequence[Pattern[str]], program_id: Optional[str]
) -> Optional[str]:
    for line in lines:
        for pattern in patterns:
            match = pattern.search(line)
            if match and is_participant_address(match.group(1), program_id):
                return match.group(1)
    return None


def extract_signer(lines: Sequence[str], context: LogContext) -> Optional[str]:
    return _first_match(lines, SIGNER_PATTERNS, context.program_id)


def _first_address_anywhere(lines: Sequence[str], program_id: Optional[str]) -> Optional[str]:
    for line in lines:
        for token in ADDRESS_TOKEN_RE.findall(line):
            if is_participant_address(token, program_id):
                return token
    return None


def _context_account(context: LogContext) -> Optional[str]:
    if context.accounts and is_participant_address(context.accounts[0], context.program_id):
        return context.accounts[0]
    return None


def extract_role(lines: Sequence[str], role: str, context: LogContext) -> RoleMap:
    program_id = context.program_id
    address = (
        _first_match(lines, _role_patterns(role), program_id)
        or extract_signer(lines, context)
        or _first_address_anywhere(lines, program_id)
        or _context_account(context)
    )
    if address is None:
        log.debug(f"no address found for role {role}", source="HeuristicParser")
        address = f"unknown_{role}"
    return {role: address}


def extract_cancellation(lines: Sequence[str], context: LogContext) -> RoleMap:
    for line in lines:
        lowered = line.lower()
        for pattern in CANCELLATION_PATTERNS:
            match = pattern.search(line)
            if not match or not is_participant_address(match.group(1), context.program_id):
                continue
            if "buyer" in lowered:
                return {"buyer": match.group(1), "seller": None}
            if "seller" in lowered:
                return {"seller": match.group(1), "buyer": None}

    signer = extract_signer(lines, context)
    if signer:
        return {"buyer": signer, "seller": None}
    return {"buyer": "unknown_buyer", "seller": None}


def extract_instant_payment(lines: Sequence[str], context: LogContext) -> RoleMap:
    participants: RoleMap = {}
    maker = _first_match(lines, MAKER_PATTERNS, context.program_id)
    if maker:
        participants["maker"] = maker
    taker = _first_match(lines, TAKER_PATTERNS, context.program_id)
    if taker:
        participants["taker"] = taker
        participants["user"] = taker
    return participants


def extract_participants(
    log_lines: Sequence[str], instruction_name: str, context: LogContext
) -> Optional[RoleMap]:
    """Role map for ``instruction_name`` or ``None`` when it is not ours."""
    rule = INSTRUCTION_RULES.get(instruction_name)
    if rule is None:
        return None
    if rule.strategy == STRATEGY_CANCELLATION:
        return extract_cancellation(log_lines, context)
    if rule.strategy == STRATEGY_INSTANT_PAYMENT:
        return extract_instant_payment(log_lines, context)
    return extract_role(log_lines, rule.role, context)


def extract_event_data(
    event_type: str, log_lines: Sequence[str], decimals: Optional[int] = None
) -> Dict[str, Any]:
    """Pull amount/currency/price/mint hints out of free log text.

    Later lines win when a field appears more than once. The refund and
    dispute fields are only produced when a caller names
    ``RefundProcessedEvent`` or ``DisputeCreatedEvent`` directly; no
    instruction in :data:`INSTRUCTION_RULES` maps to those events.
    """
    data: Dict[str, Any] = {}
    for line in log_lines:
        match = _AMOUNT_RE.search(line)
        if match:
            data["amount"] = int(match.group(1))
            data["amount_formatted"] = format_token_amount(int(match.group(1)), decimals)
        match = _FIAT_RE.search(line)
        if match:
            data["fiat_amount"] = int(match.group(1))
        match = _CURRENCY_RE.search(line)
        if match:
            data["currency"] = match.group(1).upper()
        match = _PRICE_RE.search(line)
        if match:
            data["price_per_token"] = int(match.group(1))
        match = _MINT_RE.search(line)
        if match:
            data["mint"] = match.group(1)

    joined = " ".join(log_lines)
    if event_type == "RefundProcessedEvent":
        match = _REFUND_RE.search(joined)
        if match:
            data["refund_amount"] = format_token_amount(int(match.group(1)), decimals, places=6)
            data["fee_refund"] = format_token_amount(int(match.group(2)), decimals, places=6)
            data["vault_closed"] = any(
                "Closing trust_vault" in line or "SwiftPay closed" in line
                for line in log_lines
            )
    elif event_type == "DisputeCreatedEvent":
        match = _DISPUTE_ID_RE.search(joined)
        if match:
            data["dispute_id"] = match.group(1)
        match = _DISPUTE_REASON_RE.search(joined)
        if match:
            data["dispute_reason"] = match.group(1).strip()
    return data


def extract_vault_address(log_lines: Sequence[str], context: LogContext) -> str:
    for line in log_lines:
        for pattern in _VAULT_PATTERNS:
            match = pattern.search(line)
            if match:
                return match.group(1)
    if context.signature:
        return f"vault_{context.signature[:8]}"
    return "unknown"


__all__ = [
    "InstructionRule",
    "INSTRUCTION_RULES",
    "SIGNER_PATTERNS",
    "extract_signer",
    "extract_role",
    "extract_cancellation",
    "extract_instant_payment",
    "extract_participants",
    "extract_event_data",
    "extract_vault_address",
]
