"""Decode on-chain SwiftPay program events and notify the wallets they concern."""

__version__ = "0.3.0"
