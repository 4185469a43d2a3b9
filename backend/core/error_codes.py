"""
Error codes carried by failed ``Result`` values.

Views map every code here to a 400 response with the code in the body, so
clients can branch on it without parsing the message.
"""

# General
NOT_FOUND = "not_found"
VALIDATION_ERROR = "validation_error"
PERMISSION_DENIED = "permission_denied"

# Ledger
INSUFFICIENT_FUNDS = "insufficient_funds"

# Rounds / bets
NO_LIVE_ROUND = "no_live_round"
BETTING_CLOSED = "betting_closed"
ALREADY_BET = "already_bet"
ROUND_STILL_RUNNING = "round_still_running"
ROUND_ALREADY_SETTLED = "round_already_settled"

# Deposits / withdrawals
INVALID_SIGNATURE = "invalid_signature"
ALREADY_PROCESSED = "already_processed"
PROVIDER_ERROR = "provider_error"
PROVIDER_NOT_CONFIGURED = "provider_not_configured"
