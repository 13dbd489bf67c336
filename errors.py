from typing import Optional


class FarmAssistantError(Exception):
    """Base error for the assistant pipeline, rendered as {"error": message}"""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class Unauthenticated(FarmAssistantError):
    """No valid session or token"""
    status_code = 401


class ValidationError(FarmAssistantError):
    """A required field is missing or malformed"""
    status_code = 400


class UpstreamError(FarmAssistantError):
    """Weather, auth or object storage provider call failed"""
    status_code = 502


class PersistenceError(FarmAssistantError):
    """Relational store write or read failed"""
    status_code = 500
