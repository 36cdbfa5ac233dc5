"""Stream endpoints for the supported exchange environments."""

from __future__ import annotations

from dataclasses import dataclass

from . import __version__

USER_AGENT = f"X10PythonStreamClient/{__version__}"
API_KEY_HEADER = "X-Api-Key"


@dataclass(frozen=True, slots=True)
class EndpointConfig:
    """Where to find the push-stream API of one environment."""

    name: str
    stream_url: str


TESTNET_CONFIG = EndpointConfig(
    name="testnet",
    stream_url="wss://api.starknet.sepolia.extended.exchange/stream.extended.exchange/v1",
)

MAINNET_CONFIG = EndpointConfig(
    name="mainnet",
    stream_url="wss://api.starknet.extended.exchange/stream.extended.exchange/v1",
)

ENVIRONMENTS: dict[str, EndpointConfig] = {
    TESTNET_CONFIG.name: TESTNET_CONFIG,
    MAINNET_CONFIG.name: MAINNET_CONFIG,
}
