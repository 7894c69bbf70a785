from swiftpay.core.event_core.addresses import is_valid_address
from swiftpay.core.event_core.heuristics import (
    extract_event_data,
    extract_participants,
    extract_vault_address,
)
from swiftpay.models.events import LogContext

SYSTEM_PROGRAM = "11111111111111111111111111111111"
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


def test_create_buy_order_buyer_pattern(make_address):
    buyer = make_address(3)
    lines = [
        "Program log: Instruction: CreateBuyOrder",
        f"Program log: buyer: {buyer}",
    ]
    assert extract_participants(lines, "CreateBuyOrder", LogContext()) == {"buyer": buyer}


def test_denylisted_address_is_never_a_participant():
    lines = [
        "Program log: Instruction: CreateBuyOrder",
        f"Program log: signer: {SYSTEM_PROGRAM}",
        f"Program {TOKEN_PROGRAM} invoke [2]",
    ]
    result = extract_participants(lines, "CreateBuyOrder", LogContext())
    assert SYSTEM_PROGRAM not in result.values()
    assert TOKEN_PROGRAM not in result.values()
    assert result == {"buyer": "unknown_buyer"}


def test_emitting_program_is_denylisted(make_address):
    program_id = make_address(42)
    lines = [f"Program {program_id} invoke [1]", "Program log: Instruction: UpdatePrice"]
    ctx = LogContext(program_id=program_id)
    assert extract_participants(lines, "UpdatePrice", ctx) == {"seller": "unknown_seller"}


def test_role_strategy_falls_back_to_signer_then_context(make_address):
    signer, account = make_address(7), make_address(8)
    lines = ["Program log: Instruction: Make", f"Program log: authority: {signer}"]
    assert extract_participants(lines, "Make", LogContext()) == {"seller": signer}

    ctx = LogContext(signature="sig", accounts=(account,))
    assert extract_participants(["Program log: Instruction: Make"], "Make", ctx) == {"seller": account}


def test_cancellation_names_one_side_only(make_address):
    seller = make_address(4)
    lines = ["Program log: Instruction: CancelOrReduceBuyOrder", f"Program log: seller: {seller}"]
    assert extract_participants(lines, "CancelOrReduceBuyOrder", LogContext()) == {
        "seller": seller,
        "buyer": None,
    }


def test_cancellation_without_matches_uses_sentinel():
    result = extract_participants(["Program log: Instruction: CancelOrReduceBuyOrder"], "CancelOrReduceBuyOrder", LogContext())
    assert result == {"buyer": "unknown_buyer", "seller": None}


def test_instant_payment_taker_also_fills_user(make_address):
    maker, taker = make_address(10), make_address(11)
    lines = [
        "Program log: Instruction: InstantReserve",
        f"Program log: liquidity provider: {maker}",
        f"Program log: taker: {taker}",
    ]
    assert extract_participants(lines, "InstantReserve", LogContext()) == {
        "maker": maker,
        "taker": taker,
        "user": taker,
    }


def test_unknown_instruction_returns_none():
    assert extract_participants(["Program log: Instruction: Transfer"], "Transfer", LogContext()) is None


def test_address_check_is_structural():
    assert is_valid_address(SYSTEM_PROGRAM)
    assert not is_valid_address("unknown_buyer")
    assert not is_valid_address("0OIl" * 10)
    assert not is_valid_address(None)


def test_event_data_regex_fields(make_address):
    mint = make_address(12)
    lines = [
        "Program log: amount: 2500000000",
        "Program log: fiat: 30000",
        "Program log: currency: ngn",
        "Program log: price: 1200",
        f"Program log: mint: {mint}",
    ]
    data = extract_event_data("InstantPaymentReservedEvent", lines)
    assert data["amount"] == 2_500_000_000
    assert data["amount_formatted"] == "2.50"
    assert data["fiat_amount"] == 30000
    assert data["currency"] == "NGN"
    assert data["price_per_token"] == 1200
    assert data["mint"] == mint


def test_dispute_fields():
    lines = ["Program log: dispute id: D42, reason: buyer never paid"]
    data = extract_event_data("DisputeCreatedEvent", lines)
    assert data["dispute_id"] == "D42"
    assert data["dispute_reason"] == "buyer never paid"


def test_refund_fields_and_vault_closure():
    lines = [
        "Program log: Refund Amount: 1500000, Fee Refund: 2500",
        "Program log: Closing trust_vault",
    ]
    data = extract_event_data("RefundProcessedEvent", lines, decimals=6)
    assert data["refund_amount"] == "1.500000"
    assert data["fee_refund"] == "0.002500"
    assert data["vault_closed"] is True
    assert "refund_amount" not in extract_event_data("BuyOrderReducedEvent", lines)


def test_vault_address_pattern_and_fallback(make_address):
    vault = make_address(13)
    assert extract_vault_address([f"Program log: trust vault: {vault}"], LogContext()) == vault
    assert extract_vault_address([], LogContext(signature="5abcdefghijk")) == "vault_5abcdefg"
