"""
TokenLoyalty: a fixed-value loyalty points simulator.
"""

__version__ = "0.1.0"
