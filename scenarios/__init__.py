"""
Runnable scenarios for the testnet automation.
"""
