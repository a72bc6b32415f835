from typing import Optional


class ProductServiceException(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ProductServiceException):
    status_code = 400


class ConflictError(ProductServiceException):
    status_code = 400


class NotFoundError(ProductServiceException):
    status_code = 404


class ImportParseError(ProductServiceException):
    status_code = 400

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details


class UploadRejected(ProductServiceException):
    status_code = 400

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code

    def to_dict(self):
        return {"error": self.message, "code": self.code}
