"""
Domain constants used across services/routers.
"""

ASSET_USDC = "USDC"
DIRECTION_CREDIT = "credit"

# Placeholder hash for custodial transfers until the provider reports one
PENDING_TX_HASH = "pending"

# Idempotency key prefixes on transactions rows
CUSTODIAL_KEY_PREFIX = "client:"
EXTERNAL_KEY_PREFIX = "external:"

PAYMENT_METHOD_CUSTODIAL = "circle_developer_wallet"
PAYMENT_METHOD_EXTERNAL = "external_wallet"

PRESET_USDC_AMOUNTS = (10, 25, 50, 100)

# Circle's native USDC contracts by EVM chain id
USDC_CONTRACTS = {
    1: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",          # Ethereum
    8453: "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",       # Base
    137: "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",        # Polygon PoS
    42161: "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",      # Arbitrum One
    43114: "0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",      # Avalanche C-Chain
    11155111: "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",   # Ethereum Sepolia
    84532: "0x036CbD53842c5426634e7929541eC2318f3dCF7e",      # Base Sepolia
    80002: "0x41E94Eb019C0762f9Bfcf9Fb1E58725BfB0e7582",      # Polygon Amoy
    421614: "0x75faf114eafb1BDbe2F0316DF893fd58CE46AA4d",     # Arbitrum Sepolia
    43113: "0x5425890298aed601595a70AB815c96711a31Bc65",      # Avalanche Fuji
}

# Chain labels stored on external-wallet transactions rows
CHAIN_NAMES = {
    1: "ETH",
    8453: "BASE",
    137: "MATIC",
    42161: "ARB",
    43114: "AVAX",
    11155111: "ETH-SEPOLIA",
    84532: "BASE-SEPOLIA",
    80002: "MATIC-AMOY",
    421614: "ARB-SEPOLIA",
    43113: "AVAX-FUJI",
}
