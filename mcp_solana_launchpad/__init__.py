"""
Solana Launchpad Package Initialization

This package provides a bonding-curve token launchpad for Solana built on the Model Context
Protocol (MCP). Campaigns mint a new token along a linear or exponential bonding curve,
collect platform and creator fees, and graduate into an external liquidity pool once their
graduation criteria are met.

The package includes:
- Q32.32 fixed-point math and checked u64 arithmetic
- Bonding curve pricing and inverse pricing
- Fee and slippage arithmetic
- Atomic buy/sell settlement against per-campaign reserves
- The campaign lifecycle state machine and graduation orchestration
- Custom error handling
- MCP server implementation for easy integration
"""
