"""
AgentWiki error taxonomy.

Every error raised by the core carries a stable ``code`` and the HTTP
``status_code`` the API layer answers with.
"""

from enum import Enum


class AgentWikiError(Exception):
    """Base exception for AgentWiki core errors."""

    code = "agentwiki_error"
    status_code = 500

    def __init__(self, message: str | None = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class AuthError(AgentWikiError):
    """Authentication failed."""

    code = "unauthorized"
    status_code = 401


class ValidationError(AgentWikiError):
    """Request data is missing or invalid."""

    code = "invalid_request"
    status_code = 400


class ConflictError(AgentWikiError):
    """Operation conflicts with existing state."""

    code = "conflict"
    status_code = 409


class NotFoundError(AgentWikiError):
    """Requested entity does not exist."""

    code = "not_found"
    status_code = 404


class ForbiddenError(AgentWikiError):
    """Agent is not allowed to perform this operation."""

    code = "forbidden"
    status_code = 403


class ConfigurationError(AgentWikiError):
    """Service is not configured for this operation."""

    code = "not_configured"
    status_code = 503


# ═══════════════════════════════════════════════════════════════
# ON-CHAIN VERIFICATION
# ═══════════════════════════════════════════════════════════════


class VerificationFailure(str, Enum):
    """Why an on-chain transfer could not be accepted."""

    NOT_FOUND = "not_found"
    FAILED_ON_CHAIN = "failed_on_chain"
    NO_TRANSFER = "no_transfer"
    MISMATCH = "mismatch"
    RPC_UNAVAILABLE = "rpc_unavailable"

    @property
    def retryable(self) -> bool:
        return self in (VerificationFailure.NOT_FOUND, VerificationFailure.RPC_UNAVAILABLE)


_VERIFICATION_MESSAGES = {
    VerificationFailure.NOT_FOUND: "Transaction not found on chain. It may not be confirmed yet.",
    VerificationFailure.FAILED_ON_CHAIN: "Transaction failed on chain",
    VerificationFailure.NO_TRANSFER: "Transaction contains no SOL transfer",
    VerificationFailure.MISMATCH: "Transaction does not match the expected sender, recipient and amount",
    VerificationFailure.RPC_UNAVAILABLE: "Solana RPC is unavailable, retry later",
}


class VerificationError(AgentWikiError):
    """On-chain transaction verification failed."""

    code = "verification_failed"

    def __init__(self, reason: VerificationFailure, message: str | None = None):
        self.reason = reason
        super().__init__(message or _VERIFICATION_MESSAGES[reason])

    @property
    def retryable(self) -> bool:
        return self.reason.retryable

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.reason == VerificationFailure.NOT_FOUND:
            return 404
        if self.reason == VerificationFailure.RPC_UNAVAILABLE:
            return 503
        return 400


# ═══════════════════════════════════════════════════════════════
# SPECIFIC FAILURES
# ═══════════════════════════════════════════════════════════════


class NoWalletLinkedError(ValidationError):
    """No wallet linked. Link a wallet before submitting transactions."""

    code = "no_wallet_linked"


class WalletAlreadyLinkedError(ConflictError):
    """Wallet is already linked to another agent."""

    code = "wallet_already_linked"


class DuplicateTransactionError(ConflictError):
    """Transaction has already been recorded."""

    code = "duplicate_transaction"


class SelfPaymentError(ForbiddenError):
    """Cannot send a payment to yourself."""

    code = "self_payment"


class ReceiverNotFoundError(NotFoundError):
    """Receiver agent not found."""

    code = "receiver_not_found"


class ReceiverInactiveError(ForbiddenError):
    """Receiver agent is not active."""

    code = "receiver_inactive"


class ReceiverNoWalletError(ValidationError):
    """Receiver has no linked wallet."""

    code = "receiver_no_wallet"


class DepositRequiredError(ForbiddenError):
    """Minimum deposit required."""

    code = "deposit_required"


class AlreadyDecidedError(ConflictError):
    """Proposal has already been decided."""

    code = "already_decided"


class SelfVoteForbiddenError(ForbiddenError):
    """Target agent cannot vote on their own slash proposal."""

    code = "self_vote_forbidden"


class DuplicateVoteError(ConflictError):
    """You have already voted on this proposal."""

    code = "duplicate_vote"


class PendingSlashExistsError(ConflictError):
    """A pending slash proposal already exists for this agent."""

    code = "pending_slash_exists"


class ChainRpcError(Exception):
    """Raised when a Solana JSON-RPC call fails."""

    def __init__(self, message: str, rpc_code: int | None = None):
        self.rpc_code = rpc_code
        super().__init__(message)
