"""
Custom Exception Classes for the Health-System Flow Simulator
Provides structured error handling with proper HTTP status codes
"""


class HealthFlowError(Exception):
    """Base exception for all simulator errors"""
    status_code = 500

    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self):
        return {
            "error": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "error_type": self.__class__.__name__
        }


class ValidationError(HealthFlowError):
    """Input validation failed"""
    status_code = 400


class UnknownIdentifierError(HealthFlowError):
    """Disease, health-system or country id has no table entry"""
    status_code = 404


class ParameterPathError(HealthFlowError):
    """Parameter path does not resolve to a numeric field"""
    status_code = 400


class SimulationError(HealthFlowError):
    """Simulation run failed"""
    status_code = 500
