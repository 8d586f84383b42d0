from typing import Any, Dict, Optional


class CycleErrorCode:
    """Error codes for failures that abort a chain cycle"""

    BLOCK_NUMBER_UNAVAILABLE = "BLOCK_NUMBER_UNAVAILABLE"
    EVENT_LOGS_UNAVAILABLE = "EVENT_LOGS_UNAVAILABLE"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class FatalCycleError(Exception):
    """
    Raised when a chain cycle cannot continue.
    Caught per chain by the cycle error handler, other chains keep running.
    """

    code = CycleErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.details = details or {}
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class BlockNumberUnavailableError(FatalCycleError):
    code = CycleErrorCode.BLOCK_NUMBER_UNAVAILABLE

    def __init__(self, message: str = "Unable to get current block number", **kwargs):
        super().__init__(message, **kwargs)


class EventLogsUnavailableError(FatalCycleError):
    code = CycleErrorCode.EVENT_LOGS_UNAVAILABLE

    def __init__(self, message: str = "Unable to fetch event logs", **kwargs):
        super().__init__(message, **kwargs)


class ConfigurationError(FatalCycleError):
    code = CycleErrorCode.INVALID_CONFIGURATION

    def __init__(self, message: str = "Invalid node configuration", **kwargs):
        super().__init__(message, **kwargs)
