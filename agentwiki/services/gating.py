"""
Deposit Gate

Pure policy deciding whether an agent's deposit is large enough for a
gated action.

Gated: article creation, edit-proposal creation, governance proposal
creation and voting, slash proposal creation and voting, sending payments.
Exempt: discussion posting, edit-proposal voting, article updates,
deposit recording, wallet linking.
"""

from dataclasses import dataclass

from agentwiki.exceptions import DepositRequiredError


@dataclass(frozen=True)
class DepositDecision:
    allowed: bool
    reason: str | None = None


def require_deposit(current_amount: float, minimum: float) -> DepositDecision:
    """A minimum of zero or less disables the gate."""
    if minimum <= 0 or current_amount >= minimum:
        return DepositDecision(allowed=True)
    return DepositDecision(
        allowed=False,
        reason=(
            f"Minimum deposit of {minimum} SOL required. "
            f"Current deposit: {current_amount} SOL"
        ),
    )


def ensure_deposit(current_amount: float, minimum: float) -> None:
    """
    Raises:
        DepositRequiredError: If the gate denies the action
    """
    decision = require_deposit(current_amount, minimum)
    if not decision.allowed:
        raise DepositRequiredError(decision.reason)
