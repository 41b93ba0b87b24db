"""
Parrotchain: a persistent order-2 Markov chain that learns from chat lines
and talks back.
"""

from parrotchain.services import ChainConfig, ChainModel, MarkovType, ReplyMode, create_store

__version__ = "0.3.0"

__all__ = ["ChainConfig", "ChainModel", "MarkovType", "ReplyMode", "create_store"]
