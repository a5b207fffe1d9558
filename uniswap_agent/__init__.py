"""
Uniswap V3 swap agent for the Celo blockchain
"""

__version__ = "0.1.0"
