"""
Test scoring and formatting helpers.
"""

from snakepill.utils.helpers import (
    calculate_points,
    format_sol,
    format_usd,
    format_wallet,
    generate_session_id,
)


def test_points_bonuses():
    assert calculate_points(120, 59) == 120
    assert calculate_points(120, 60) == 220
    assert calculate_points(120, 299) == 220
    assert calculate_points(120, 300) == 720


def test_session_ids_are_unique():
    ids = {generate_session_id() for _ in range(100)}
    assert len(ids) == 100


def test_formatting():
    assert format_wallet("AbCdEfGhIjKlMnOpQrSt") == "AbCd...QrSt"
    assert format_wallet("short") == "short"
    assert format_sol(0.1) == "0.1000"
    assert format_usd(1234.5) == "$1,234.50"
