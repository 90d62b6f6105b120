"""
Custom exception classes for the application.
Provides structured error handling across all modules.
"""

from typing import Any, Optional, Dict


class SnakePillException(Exception):
    """Base exception class for the SNAKEPILL backend."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(SnakePillException):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class DatabaseError(SnakePillException):
    """Raised when there's a database error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DATABASE_ERROR", details)


class PaymentError(SnakePillException):
    """Raised when a SOL transfer cannot be sent or confirmed."""

    def __init__(
        self,
        message: str,
        wallet: Optional[str] = None,
        amount_sol: Optional[float] = None
    ):
        super().__init__(
            message,
            "PAYMENT_ERROR",
            {"wallet": wallet, "amount_sol": amount_sol}
        )
        self.wallet = wallet
        self.amount_sol = amount_sol


class SchedulerError(SnakePillException):
    """Raised when there's a scheduler error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SCHEDULER_ERROR", details)


class ValidationError(SnakePillException):
    """Raised when data validation fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(SnakePillException):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOT_FOUND", details)


class AuthenticationError(SnakePillException):
    """Raised when authentication fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTHENTICATION_ERROR", details)


class ExternalServiceError(SnakePillException):
    """Raised when an external service error occurs."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "EXTERNAL_SERVICE_ERROR", details)


# Player-specific exceptions
class PlayerNotFoundError(NotFoundError):
    """Raised when a player is not found."""

    def __init__(self, wallet: str):
        super().__init__(
            "Player not found",
            {"wallet": wallet}
        )


class SkinNotFoundError(NotFoundError):
    """Raised when a skin is not in the catalog."""

    def __init__(self, skin_id: str):
        super().__init__(
            "Skin not found",
            {"skin_id": skin_id}
        )


class GameSessionNotFoundError(NotFoundError):
    """Raised when a game session does not exist."""

    def __init__(self, session_id: str):
        super().__init__(
            "Game session not found",
            {"session_id": session_id}
        )


class GameSessionFinishedError(ValidationError):
    """Raised when a game session has already been ended."""

    def __init__(self, session_id: str):
        super().__init__(
            "Game session already ended",
            {"session_id": session_id}
        )


# Skin shop exceptions
class InsufficientPointsError(ValidationError):
    """Raised when a player cannot afford a skin."""

    def __init__(self, required: int, available: int):
        super().__init__(
            "Not enough points",
            {"required": required, "available": available}
        )


class SkinOwnershipError(ValidationError):
    """Raised when a skin is bought twice or equipped without being owned."""

    def __init__(self, skin_id: str, owned: bool):
        super().__init__(
            "Skin already owned" if owned else "Skin not owned",
            {"skin_id": skin_id}
        )
