"""
SNAKEPILL Backend

Backend service for the SNAKEPILL snake game that provides:
- Scheduled holder eligibility checks against on-chain balances
- Tax distribution payouts to eligible wallets
- REST API for game sessions, leaderboard and skins
"""

__version__ = "0.1.0"
__author__ = "SNAKEPILL Team"
