"""
Execution layer - quoting, approvals and swaps on Uniswap V3
"""
