"""
Custom Exception Classes for the Solana Launchpad

This module defines the exception hierarchy raised by the bonding-curve engine, the
campaign lifecycle and the platform facade. Every failure surfaces as its own class so
that callers (the MCP tools, a UI, a bot) can tell a slippage rejection apart from a
configuration mistake and react accordingly.

Exception Categories:
- ValidationError: Out-of-range parameters (fee bps, name/symbol/uri length, decimals,
  time limit, curve parameters)
- StateError: Platform paused, campaign not active, already graduated, unauthorized caller
- CurveArithmeticError: Overflow, underflow and division by zero from checked u64 math
- EconomicError: Slippage exceeded, minimum output not met, max supply exceeded,
  insufficient balances
- VenueError: Failures reported by the external liquidity venue during graduation
- ConfigurationError: Invalid environment configuration

All errors are fail-fast and non-retryable inside the engine: an operation that raises
has applied no mutation. Retrying with adjusted parameters is the caller's decision.
"""


class LaunchpadError(Exception):
    """Base class for every error raised by the launchpad."""


class ConfigurationError(LaunchpadError):
    """Raised when there are configuration-related errors."""


# --- Validation Errors ---

class ValidationError(LaunchpadError):
    """Raised when input validation fails."""


class InvalidFeeBasisPointsError(ValidationError):
    """Raised when a fee is outside its permitted basis-point range."""


class InvalidCreatorFeeError(ValidationError):
    """Raised when the creator fee exceeds 500 basis points."""


class TokenNameTooLongError(ValidationError):
    """Raised when the token name is longer than 32 bytes."""


class TokenSymbolTooLongError(ValidationError):
    """Raised when the token symbol is longer than 8 bytes."""


class MetadataUriTooLongError(ValidationError):
    """Raised when the metadata URI is longer than 200 bytes."""


class InvalidDecimalsError(ValidationError):
    """Raised when token decimals exceed 9."""


class InvalidTotalSupplyError(ValidationError):
    """Raised when the reserved total supply is not positive."""


class InvalidTimeLimitError(ValidationError):
    """Raised when a graduation time limit is not strictly in the future."""


class InvalidCurveParamsError(ValidationError):
    """Raised for invalid curve parameters or an unsupported curve type."""


# --- State Errors ---

class StateError(LaunchpadError):
    """Raised when an operation is not allowed in the current state."""


class PlatformPausedError(StateError):
    """Raised when the platform kill switch is engaged."""


class PlatformNotInitializedError(StateError):
    """Raised when the platform configuration has not been initialized yet."""


class PlatformAlreadyInitializedError(StateError):
    """Raised on a second attempt to initialize the platform configuration."""


class LaunchpadNotActiveError(StateError):
    """Raised when the campaign is not in the Active state."""


class LaunchpadAlreadyGraduatedError(LaunchpadNotActiveError):
    """Raised when the campaign has already graduated."""


class GraduationCriteriaNotMetError(StateError):
    """Raised when graduation is requested before every criterion holds."""


class UnauthorizedError(StateError):
    """Raised when the caller is not allowed to perform the operation."""


class CampaignNotFoundError(StateError):
    """Raised when no campaign is registered under the given id."""


class CampaignExistsError(StateError):
    """Raised when a campaign id is already registered."""


# --- Arithmetic Errors ---

class CurveArithmeticError(LaunchpadError):
    """Raised when checked integer arithmetic fails."""


class ArithmeticOverflowError(CurveArithmeticError):
    """Raised when a result does not fit in an unsigned 64-bit integer."""


class ArithmeticUnderflowError(CurveArithmeticError):
    """Raised when a subtraction would go below zero."""


class DivisionByZeroError(CurveArithmeticError):
    """Raised when dividing by zero."""


# --- Economic Errors ---

class EconomicError(LaunchpadError):
    """Raised when a trade is economically unacceptable."""


class SlippageExceededError(EconomicError):
    """Raised when the settled amount falls below the slippage tolerance."""


class MinTokensNotMetError(EconomicError):
    """Raised when a buy would mint fewer tokens than requested."""


class MinSolNotMetError(EconomicError):
    """Raised when a sell would pay out less than requested."""


class MaxSupplyExceededError(EconomicError):
    """Raised when a buy would push supply past the curve's max supply."""


class InsufficientSolAmountError(EconomicError):
    """Raised when a payment amount or vault balance is insufficient."""


class InsufficientTokenAmountError(EconomicError):
    """Raised when a token amount or holder balance is insufficient."""


# --- Venue Errors ---

class VenueError(LaunchpadError):
    """Raised when the external liquidity venue fails."""


class PoolCreationFailedError(VenueError):
    """Raised when the liquidity venue could not create the pool."""


class LiquidityProvisionFailedError(VenueError):
    """Raised when adding or distributing pool liquidity failed."""
