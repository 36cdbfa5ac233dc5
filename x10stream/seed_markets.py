"""Seed mids and per-market parameters for the order-book simulator."""

# Starting mid prices for the default markets
SEED_MIDS: dict[str, float] = {
    "BTC-USD": 60000.0,
    "ETH-USD": 3000.0,
    "SOL-USD": 150.0,
    "DOGE-USD": 0.15,
    "XRP-USD": 0.55,
}

# Price tick per market, as decimal strings
TICK_SIZES: dict[str, str] = {
    "BTC-USD": "1",
    "ETH-USD": "0.1",
    "SOL-USD": "0.01",
    "DOGE-USD": "0.00001",
    "XRP-USD": "0.0001",
}

# Per-market GBM parameters
# sigma: annualized volatility, mu: annualized drift
# base_qty: mean resting size per level, in base asset units
MARKET_PARAMS: dict[str, dict[str, float]] = {
    "BTC-USD": {"sigma": 0.60, "mu": 0.05, "base_qty": 0.5},
    "ETH-USD": {"sigma": 0.75, "mu": 0.05, "base_qty": 5.0},
    "SOL-USD": {"sigma": 1.00, "mu": 0.05, "base_qty": 50.0},
    "DOGE-USD": {"sigma": 1.20, "mu": 0.0, "base_qty": 50000.0},
    "XRP-USD": {"sigma": 0.90, "mu": 0.0, "base_qty": 10000.0},
}

# Defaults for markets not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.80, "mu": 0.05, "base_qty": 10.0}
DEFAULT_TICK = "0.01"

# Size increment of simulated resting quantities
QTY_STEP = "0.001"
