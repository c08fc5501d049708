import os
import logging
from typing import Optional
from solders.pubkey import Pubkey
from dotenv import load_dotenv

# Import custom errors
from mcp_solana_launchpad.errors import ConfigurationError

"""
Configuration Management for the Solana Launchpad

This module handles configuration loading and validation for the launchpad engine and its
MCP server. Settings come from environment variables (optionally a .env file) with
defaults suitable for local development.

Configuration Sources (in order of precedence):
1. Environment variables
2. Default values defined in this module
3. Configuration validation and type conversion

Environment Variables:
    LAUNCHPAD_PROGRAM_ID: Program id used to derive campaign custody addresses
    PLATFORM_AUTHORITY: Public key allowed to pause, withdraw fees and graduate
    FEE_DESTINATION: Public key receiving withdrawn platform fees
    PLATFORM_FEE_BPS: Platform fee on every trade, 0-1000 basis points
    LIQUIDITY_SOL_PERCENT: Share of SOL reserves seeded into the pool at graduation
    LIQUIDITY_TOKEN_PERCENT: Share of reserved tokens seeded into the pool at graduation
    LP_CREATOR_PERCENT: Share of minted LP tokens sent to the creator
    LP_PLATFORM_PERCENT: Share of minted LP tokens sent to the platform authority
"""

# Set up logger
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

MAX_PLATFORM_FEE_BPS = 1000
MAX_CREATOR_FEE_BPS = 500
MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 8
MAX_URI_LENGTH = 200
MAX_DECIMALS = 9


def _get_env_str(key: str, default: str, required: bool = False) -> str:
    """Get environment variable as string with validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {key} is not set")
    return value


def _get_env_int(key: str, default: int, min_val: Optional[int] = None, max_val: Optional[int] = None) -> int:
    """Get environment variable as integer with validation."""
    try:
        value = int(os.getenv(key, str(default)))
    except ValueError:
        raise ConfigurationError(f"Environment variable {key} must be a valid integer")
    if min_val is not None and value < min_val:
        raise ConfigurationError(f"Environment variable {key} must be >= {min_val}")
    if max_val is not None and value > max_val:
        raise ConfigurationError(f"Environment variable {key} must be <= {max_val}")
    return value


def _get_env_pubkey(key: str, default: str) -> Pubkey:
    """Get environment variable as Pubkey with validation."""
    try:
        value = os.getenv(key, default)
        return Pubkey.from_string(value)
    except Exception as e:
        raise ConfigurationError(f"Environment variable {key} must be a valid public key: {e}")


# --- Solana Configuration ---
try:
    LAMPORTS_PER_SOL = 10**9
    LAUNCHPAD_PROGRAM_ID = _get_env_pubkey("LAUNCHPAD_PROGRAM_ID", "8UvF1rHKk43GzFgtzLbtEQjVW6HyTZukfxyCDPziaMtH")

    # --- Platform Configuration ---
    # When PLATFORM_AUTHORITY is unset the server starts uninitialized and waits for initialize_platform
    _authority = _get_env_str("PLATFORM_AUTHORITY", "")
    PLATFORM_AUTHORITY = _get_env_pubkey("PLATFORM_AUTHORITY", _authority) if _authority else None
    FEE_DESTINATION = _get_env_pubkey("FEE_DESTINATION", _authority) if _authority else None
    PLATFORM_FEE_BPS = _get_env_int("PLATFORM_FEE_BPS", 100, min_val=0, max_val=MAX_PLATFORM_FEE_BPS)

    # --- Graduation Configuration ---
    LIQUIDITY_SOL_PERCENT = _get_env_int("LIQUIDITY_SOL_PERCENT", 80, min_val=0, max_val=100)
    LIQUIDITY_TOKEN_PERCENT = _get_env_int("LIQUIDITY_TOKEN_PERCENT", 60, min_val=0, max_val=100)
    LP_CREATOR_PERCENT = _get_env_int("LP_CREATOR_PERCENT", 70, min_val=0, max_val=100)
    LP_PLATFORM_PERCENT = _get_env_int("LP_PLATFORM_PERCENT", 20, min_val=0, max_val=100)
    if LP_CREATOR_PERCENT + LP_PLATFORM_PERCENT > 100:
        raise ConfigurationError("LP_CREATOR_PERCENT + LP_PLATFORM_PERCENT must not exceed 100")

    logger.info("Configuration loaded successfully")

except ConfigurationError as e:
    logger.error(f"Configuration error: {e}")
    raise
except Exception as e:
    logger.error(f"Unexpected error loading configuration: {e}")
    raise ConfigurationError(f"Failed to load configuration: {e}")
