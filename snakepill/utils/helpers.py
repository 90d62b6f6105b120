"""
Small formatting and scoring helpers shared by the API and CLI.
"""

import secrets
import time


SURVIVAL_BONUS_SECONDS = 60
SURVIVAL_BONUS_POINTS = 100
MARATHON_BONUS_SECONDS = 300
MARATHON_BONUS_POINTS = 500


def calculate_points(score: int, playtime_seconds: int, pills_eaten: int = 0) -> int:
    """Points awarded for a finished session: score plus survival bonuses."""
    points = score

    if playtime_seconds >= SURVIVAL_BONUS_SECONDS:
        points += SURVIVAL_BONUS_POINTS

    if playtime_seconds >= MARATHON_BONUS_SECONDS:
        points += MARATHON_BONUS_POINTS

    return points


def generate_session_id() -> str:
    """Client-facing presence id: millisecond timestamp plus random suffix."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"


def format_wallet(address: str) -> str:
    if not address or len(address) < 12:
        return address
    return f"{address[:4]}...{address[-4:]}"


def format_sol(amount: float) -> str:
    return f"{amount:.4f}"


def format_usd(amount: float) -> str:
    return f"${amount:,.2f}"
