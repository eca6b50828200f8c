"""
Payment specific codes and the Midtrans status vocabulary.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Gateway errors (6xxxx)
    GATEWAY_REJECTED = 60000
    GATEWAY_MISCONFIGURED = 60001
    VERIFICATION_FAILED = 60002


# Midtrans transaction_status values
TRANSACTION_CAPTURE = "capture"
TRANSACTION_SETTLEMENT = "settlement"
TRANSACTION_PENDING = "pending"
TRANSACTION_CANCEL = "cancel"
TRANSACTION_DENY = "deny"
TRANSACTION_EXPIRE = "expire"

# Midtrans fraud_status value that clears a capture
FRAUD_ACCEPT = "accept"

FAILED_TRANSACTION_STATUSES = frozenset({TRANSACTION_CANCEL, TRANSACTION_DENY, TRANSACTION_EXPIRE})

# Core API reports an expired transaction with status_code 407; it is a valid
# lookup result, not an error.
EXPIRED_STATUS_CODE = 407
