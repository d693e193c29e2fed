"""Log Triage - Exceptions"""


class LogTriageError(Exception):
    """Base class for errors raised by log_triage"""


class LogInputError(LogTriageError):
    """Input could not be read as text"""


class DetectionCancelled(LogTriageError):
    """Detection was stopped through its cancel event"""
