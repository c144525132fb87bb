"""
Exceptions raised by the simulator core.
"""

from typing import Optional


class SimulatorError(Exception):
    """Base class for simulator errors"""


class PreconditionViolation(SimulatorError):
    """
    An operation was requested in a state that does not allow it.

    Never fatal: the engine reports it as a warning guidance and leaves
    its state unchanged.
    """

    def __init__(self, title: str, message: str):
        super().__init__(message)
        self.title = title
        self.message = message


class PersistenceReadFailure(SimulatorError):
    """Stored device data could not be read or decoded"""

    def __init__(self, key: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(f"Could not load '{key}': {reason}")
        self.key = key
        self.reason = reason
        self.cause = cause


class InvalidDeviceData(SimulatorError, ValueError):
    """Device records failed validation"""


class AddressPoolExhausted(SimulatorError):
    """No free address is left in the RARP pool"""
