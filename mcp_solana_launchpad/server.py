"""
Solana Launchpad Server - MCP Server Implementation

This module exposes the bonding-curve launchpad as MCP tools. Each tool validates its
input, forwards to the Launchpad facade and turns the result into a short message, or
the error into a message that names its category so clients can react (raise slippage
tolerance, fix parameters, wait for unpause).

Key Features:
- Platform initialization, kill switch and fee withdrawal
- Campaign creation from a JSON configuration
- Buy/sell on linear and exponential bonding curves with slippage protection
- Quotes that run every check without settling
- Pause toggling, graduation progress and graduation into a liquidity pool

Error Reporting:
- ValidationError -> "Invalid parameters"
- StateError -> "Operation not allowed"
- EconomicError -> "Trade rejected"
- CurveArithmeticError -> "Arithmetic error"
- VenueError -> "Liquidity venue error"
Unexpected exceptions are logged with their traceback and reported generically.
"""

import json
import time
from typing import Optional

from pydantic import Field, ValidationError as SchemaValidationError

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.utilities.logging import get_logger

from mcp_solana_launchpad import config
from mcp_solana_launchpad.errors import (
    CurveArithmeticError,
    EconomicError,
    LaunchpadError,
    StateError,
    ValidationError,
    VenueError,
)
from mcp_solana_launchpad.launchpad import Launchpad
from mcp_solana_launchpad.schemas import CreateCampaignParams, PoolConfig

logger = get_logger(__name__)

MAX_CONFIG_JSON_LENGTH = 10000

# --- Server Setup ---
mcp = FastMCP(name="Solana Launchpad Server")


def create_launchpad() -> Launchpad:
    """Builds the server's launchpad, initializing the platform from the environment when configured."""
    pad = Launchpad()
    if config.PLATFORM_AUTHORITY is not None:
        pad.initialize_platform(
            str(config.PLATFORM_AUTHORITY), config.PLATFORM_FEE_BPS, str(config.FEE_DESTINATION)
        )
    return pad


launchpad = create_launchpad()

ERROR_CATEGORIES = [
    (ValidationError, "Invalid parameters"),
    (StateError, "Operation not allowed"),
    (EconomicError, "Trade rejected"),
    (CurveArithmeticError, "Arithmetic error"),
    (VenueError, "Liquidity venue error"),
]


def lamports_to_sol(lamports: int) -> float:
    """Convert lamports to SOL."""
    return lamports / config.LAMPORTS_PER_SOL


def format_token_amount(amount: int, decimals: int, symbol: str) -> str:
    """Format token amount with proper decimal places and symbol."""
    token_amount_ui = amount / (10 ** decimals)
    return f"{token_amount_ui:.{decimals}f} {symbol}"


def format_error(operation: str, error: Exception) -> str:
    """Log a failed operation and return a message naming the error category."""
    for error_type, label in ERROR_CATEGORIES:
        if isinstance(error, error_type):
            logger.warning(f"{operation} rejected: {type(error).__name__}: {error}")
            return f"{label} ({type(error).__name__}): {error}"
    if isinstance(error, LaunchpadError):
        logger.error(f"{operation} failed: {type(error).__name__}: {error}")
        return f"Error ({type(error).__name__}): {error}"
    logger.exception(f"Unexpected error during {operation}: {error}")
    return f"An unexpected server error occurred during {operation}."


# --- Platform Tools ---

@mcp.tool()
async def initialize_platform(
    context: Context,
    authority: str = Field(..., description="Public key of the platform authority."),
    platform_fee_bps: int = Field(..., description="Platform fee in basis points (0-1000)."),
    fee_destination: Optional[str] = Field(None, description="Public key receiving withdrawn fees."),
) -> str:
    """Initializes the platform configuration. Can only be done once."""
    try:
        platform = launchpad.initialize_platform(authority, platform_fee_bps, fee_destination)
        return f"Platform initialized with fee {platform.platform_fee_bps} bps, authority {platform.authority}."
    except Exception as e:
        return format_error("Platform initialization", e)


@mcp.tool()
async def set_platform_paused(
    context: Context,
    authority: str = Field(..., description="Public key of the platform authority."),
    paused: bool = Field(..., description="True to halt all trading, False to resume."),
) -> str:
    """Engages or releases the platform-wide kill switch."""
    try:
        platform = launchpad.set_platform_paused(authority, paused)
        return f"Platform {'paused' if platform.paused else 'resumed'}."
    except Exception as e:
        return format_error("Platform pause", e)


@mcp.tool()
async def withdraw_fees(
    context: Context,
    authority: str = Field(..., description="Public key of the platform authority."),
) -> str:
    """Moves all accumulated platform fees to the configured fee destination."""
    try:
        amount = launchpad.withdraw_fees(authority)
        if amount == 0:
            return "No fees to withdraw."
        return f"Withdrew {amount} lamports ({lamports_to_sol(amount):.9f} SOL) in fees."
    except Exception as e:
        return format_error("Fee withdrawal", e)


# --- Campaign Tools ---

@mcp.tool()
async def create_campaign(
    context: Context,
    creator: str = Field(..., description="Public key of the campaign creator."),
    config_json: str = Field(..., description="The campaign configuration as a JSON string."),
) -> str:
    """Creates a new campaign from a JSON configuration string."""
    try:
        if not config_json or not isinstance(config_json, str):
            raise ValidationError("Configuration JSON must be a non-empty string")
        if len(config_json) > MAX_CONFIG_JSON_LENGTH:
            raise ValidationError("Configuration JSON is too large (max 10KB)")

        params = CreateCampaignParams.model_validate(json.loads(config_json))
        campaign = launchpad.create_campaign(creator, params)
        return f"Campaign '{campaign.campaign_id}' created for {campaign.name} ({campaign.symbol})."
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON for create_campaign request: {e}")
        return "Error: Invalid JSON format provided. Please check your JSON syntax."
    except SchemaValidationError as e:
        logger.error(f"Invalid campaign configuration provided to create_campaign: {e}")
        return f"Error: Invalid campaign configuration - {e}"
    except Exception as e:
        return format_error("Campaign creation", e)


@mcp.tool()
async def get_campaign_info(
    context: Context,
    campaign_id: str = Field(..., description="The campaign ID (token mint address)."),
) -> str:
    """Get information about a specific campaign."""
    try:
        campaign = launchpad.get_campaign(campaign_id)
        return campaign.model_dump_json(indent=2)
    except Exception as e:
        return format_error("Campaign lookup", e)


@mcp.tool()
async def get_creator_profile(
    context: Context,
    creator: str = Field(..., description="Public key of the creator."),
) -> str:
    """Get launch statistics for a creator."""
    profile = launchpad.get_creator_profile(creator)
    if profile is None:
        return f"No launches found for creator {creator}."
    return profile.model_dump_json(indent=2)


@mcp.tool()
async def toggle_pause(
    context: Context,
    campaign_id: str = Field(..., description="The campaign ID (token mint address)."),
    authority: str = Field(..., description="Public key of the platform authority."),
) -> str:
    """Pauses an active campaign or resumes a paused one."""
    try:
        status = launchpad.toggle_pause(campaign_id, authority)
        return f"Campaign '{campaign_id}' is now {status.value}."
    except Exception as e:
        return format_error("Campaign pause", e)


# --- Trading Tools ---

@mcp.tool()
async def quote_buy(
    context: Context,
    campaign_id: str = Field(..., description="The campaign ID (token mint address)."),
    trader: str = Field(..., description="Public key of the buyer."),
    payment_amount: int = Field(..., description="Lamports to spend, fees included."),
) -> str:
    """Previews a buy without settling it."""
    try:
        receipt = launchpad.quote_buy(campaign_id, trader, payment_amount)
        return receipt.model_dump_json(indent=2)
    except Exception as e:
        return format_error("Buy quote", e)


@mcp.tool()
async def quote_sell(
    context: Context,
    campaign_id: str = Field(..., description="The campaign ID (token mint address)."),
    trader: str = Field(..., description="Public key of the seller."),
    token_amount: int = Field(..., description="Tokens to sell (in base units)."),
) -> str:
    """Previews a sell without settling it."""
    try:
        receipt = launchpad.quote_sell(campaign_id, trader, token_amount)
        return receipt.model_dump_json(indent=2)
    except Exception as e:
        return format_error("Sell quote", e)


@mcp.tool()
async def buy_tokens(
    context: Context,
    campaign_id: str = Field(..., description="The campaign ID (token mint address)."),
    trader: str = Field(..., description="Public key of the buyer."),
    payment_amount: int = Field(..., description="Lamports to spend, fees included."),
    min_tokens_out: int = Field(..., description="Minimum tokens to receive (in base units)."),
    max_slippage_bps: int = Field(..., description="Slippage tolerance in basis points."),
) -> str:
    """
    Buys tokens from a campaign's bonding curve.

    Args:
        context: MCP context object (provided by framework)
        campaign_id: Token mint address identifying the campaign
        trader: Buyer's public key
        payment_amount: Lamports paid, platform and creator fees included
        min_tokens_out: Minimum acceptable tokens; the buy fails below it
        max_slippage_bps: Tolerance below min_tokens_out, 0 requires an exact match

    Returns:
        str: Success message with settlement details, or an error message naming the
        error category
    """
    start_time = time.time()
    try:
        receipt = launchpad.buy(campaign_id, trader, payment_amount, min_tokens_out, max_slippage_bps)
        campaign = launchpad.get_campaign(campaign_id)
        token_display = format_token_amount(receipt.tokens_out, campaign.decimals, campaign.symbol)
        logger.info(f"Token purchase completed for campaign '{campaign_id}': amount={token_display}, "
                    f"paid={lamports_to_sol(payment_amount):.9f} SOL, duration={time.time() - start_time:.3f}s")
        return (f"Successfully purchased {token_display} for {lamports_to_sol(payment_amount):.9f} SOL "
                f"(fees: {receipt.platform_fee + receipt.creator_fee} lamports). "
                f"New price: {receipt.new_price} lamports per token.")
    except Exception as e:
        return format_error("Token purchase", e)


@mcp.tool()
async def sell_tokens(
    context: Context,
    campaign_id: str = Field(..., description="The campaign ID (token mint address)."),
    trader: str = Field(..., description="Public key of the seller."),
    token_amount: int = Field(..., description="Tokens to sell (in base units)."),
    min_payment_out: int = Field(..., description="Minimum lamports to receive after fees."),
    max_slippage_bps: int = Field(..., description="Slippage tolerance in basis points."),
) -> str:
    """Sells tokens back to a campaign's bonding curve."""
    start_time = time.time()
    try:
        receipt = launchpad.sell(campaign_id, trader, token_amount, min_payment_out, max_slippage_bps)
        campaign = launchpad.get_campaign(campaign_id)
        token_display = format_token_amount(token_amount, campaign.decimals, campaign.symbol)
        logger.info(f"Token sale completed for campaign '{campaign_id}': amount={token_display}, "
                    f"received={lamports_to_sol(receipt.net_payment):.9f} SOL, "
                    f"duration={time.time() - start_time:.3f}s")
        return (f"Successfully sold {token_display} for {lamports_to_sol(receipt.net_payment):.9f} SOL "
                f"(fees: {receipt.platform_fee + receipt.creator_fee} lamports).")
    except Exception as e:
        return format_error("Token sale", e)


# --- Graduation Tools ---

@mcp.tool()
async def get_graduation_progress(
    context: Context,
    campaign_id: str = Field(..., description="The campaign ID (token mint address)."),
) -> str:
    """Reports progress towards each graduation criterion."""
    try:
        return launchpad.graduation_progress(campaign_id).model_dump_json(indent=2)
    except Exception as e:
        return format_error("Graduation progress", e)


@mcp.tool()
async def graduate_campaign(
    context: Context,
    campaign_id: str = Field(..., description="The campaign ID (token mint address)."),
    authority: str = Field(..., description="Public key of the creator or platform authority."),
    pool_config_json: Optional[str] = Field(None, description="Optional pool configuration as JSON."),
) -> str:
    """Graduates a campaign into an external liquidity pool."""
    try:
        pool_config = PoolConfig.model_validate(json.loads(pool_config_json)) if pool_config_json else None
        receipt = launchpad.graduate(campaign_id, authority, pool_config)
        return (f"Campaign '{campaign_id}' graduated into pool {receipt.pool.address}: "
                f"{receipt.allocation.sol_amount} lamports and {receipt.allocation.token_amount} tokens seeded, "
                f"{receipt.distribution.lp_amount} LP tokens distributed.")
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding pool config JSON: {e}")
        return "Error: Invalid JSON format provided. Please check your JSON syntax."
    except SchemaValidationError as e:
        logger.error(f"Invalid pool configuration provided to graduate_campaign: {e}")
        return f"Error: Invalid pool configuration - {e}"
    except Exception as e:
        return format_error("Graduation", e)


# --- Main Execution ---
if __name__ == "__main__":
    logger.info("Starting Solana Launchpad MCP Server...")
    try:
        mcp.run(transport="stdio")
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
