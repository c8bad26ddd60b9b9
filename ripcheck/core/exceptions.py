"""
Custom exceptions for ripcheck

This module defines the exceptions raised across the analysis, repair and
library services. Per-track failures are reported through these types and
collected by the batch services; only enumeration errors end a run.
"""


class RipCheckError(Exception):
    """Base exception for all ripcheck errors"""

    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.filepath = filepath

    def __str__(self):
        parts = [self.message]
        if self.filepath:
            parts.append(f"File: {self.filepath}")
        if self.details:
            parts.append(f"Details: {self.details}")
        return " | ".join(parts)


class AnalysisStateError(RipCheckError):
    """Raised when a track is read before analysis or analysed twice"""
    pass


class RepairPreconditionError(RipCheckError):
    """Raised when a repair is planned for a track that is not fixable"""
    pass


class ServiceError(RipCheckError):
    """Raised when a service operation fails"""

    def __init__(self, service_name: str, message: str, details: str = None, filepath: str = None):
        super().__init__(message, details, filepath)
        self.service_name = service_name

    def __str__(self):
        return f"[{self.service_name}] {super().__str__()}"


class DetectionError(ServiceError):
    """Raised when the silence detection tool cannot produce a result"""

    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("Detection", message, details, filepath)


class TrimError(ServiceError):
    """Raised when the external trim step fails"""

    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("Trim", message, details, filepath)


class FileOperationError(ServiceError):
    """Raised when file operations fail"""

    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("FileOperations", message, details, filepath)


class CatalogError(ServiceError):
    """Raised when the reference catalog lookup fails"""

    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("Catalog", message, details, filepath)


class ConfigurationError(ServiceError):
    """Raised when configuration cannot be loaded or is invalid"""

    def __init__(self, message: str, details: str = None, filepath: str = None):
        super().__init__("Configuration", message, details, filepath)
