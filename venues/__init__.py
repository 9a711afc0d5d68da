"""Price venues the arbitrage route swaps through"""
from .base import BaseVenue
from .simulator import SimulatedVenue, create_simulated_venues
from .amm import ConstantProductVenue

__all__ = [
    "BaseVenue",
    "SimulatedVenue",
    "create_simulated_venues",
    "ConstantProductVenue",
]
