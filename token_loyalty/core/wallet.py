"""
Mock wallet connection.

Addresses are cosmetic: a network prefix plus random hex. They carry no
credential and no uniqueness guarantee.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import LoyaltyValidationError


class Network(Enum):
    """Networks a mock wallet can claim to be on."""
    DEMO = "demo"
    ETH = "eth"
    SOL = "sol"


ADDRESS_PREFIXES = {
    Network.DEMO: "demo",
    Network.ETH: "0x",
    Network.SOL: "SoL",
}


@dataclass(frozen=True)
class Wallet:
    """A connected mock wallet."""
    address: str
    network: Network

    @property
    def short_address(self) -> str:
        """Address abbreviated as first 6 + last 4 characters."""
        if len(self.address) <= 10:
            return self.address
        return f"{self.address[:6]}…{self.address[-4:]}"


def parse_network(value) -> Network:
    """Parse a network label such as 'eth' or 'SOL'.

    Raises:
        LoyaltyValidationError: If the label is not a known network
    """
    if isinstance(value, Network):
        return value
    try:
        return Network(str(value).strip().lower())
    except ValueError:
        valid = [network.value for network in Network]
        raise LoyaltyValidationError(f"Unknown network '{value}', must be one of: {valid}")


def mock_connect(network: Network = Network.DEMO, rng: Optional[random.Random] = None) -> Wallet:
    """Produce a pseudo-random wallet on the given network."""
    rng = rng or random.Random()
    suffix = "".join(rng.choice("0123456789abcdef") for _ in range(12))
    return Wallet(address=f"{ADDRESS_PREFIXES[network]}{suffix}", network=network)
