"""Decoding and parsing of SwiftPay program logs."""

from .addresses import is_valid_address, is_participant_address
from .decoder import decode, decode_program_data
from .discriminators import EVENT_DISCRIMINATORS, event_discriminator, identify_event_type
from .encoder import encode_event, encode_program_data
from .event_parser import EventParser, parse_logs_for_events
from .heuristics import INSTRUCTION_RULES, extract_participants

__all__ = [
    "is_valid_address",
    "is_participant_address",
    "decode",
    "decode_program_data",
    "EVENT_DISCRIMINATORS",
    "event_discriminator",
    "identify_event_type",
    "encode_event",
    "encode_program_data",
    "EventParser",
    "parse_logs_for_events",
    "INSTRUCTION_RULES",
    "extract_participants",
]
