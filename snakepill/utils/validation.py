"""
Blockchain data validation utilities.
Provides validation functions for Solana addresses.
"""

from solders.pubkey import Pubkey


class SolanaValidator:
    """Validator for Solana blockchain data."""

    @staticmethod
    def is_valid_pubkey(address: str) -> bool:
        """
        Validate if a string is a valid Solana public key.

        Structural check only: base58 alphabet, 32..44 characters and a
        32-byte decoded value. Account existence is not checked.

        Args:
            address: String to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            if not address or len(address) < 32 or len(address) > 44:
                return False
            Pubkey.from_string(address)
            return True
        except Exception:
            return False


def validate_wallet_address(address: str) -> bool:
    """Shortcut used by the API layer."""
    return SolanaValidator.is_valid_pubkey(address)
