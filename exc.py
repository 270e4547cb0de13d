class ApplicationError(Exception):
    pass


class ConfigurationError(ApplicationError):
    pass


class TransportError(ApplicationError):
    """Errors that are reported as a plain HTTP error instead of inside an
    AdmissionReview envelope."""

    status_code = 500


class EmptyBodyError(TransportError):
    status_code = 400

    def __init__(self, message="empty body"):
        super().__init__(message)


class MalformedBodyError(TransportError):
    status_code = 400


class UnsupportedMediaTypeError(TransportError):
    status_code = 415

    def __init__(self, content_type=None):
        super().__init__("invalid Content-Type, expected `application/json`")
        self.content_type = content_type


class ResponseEncodeError(TransportError):
    status_code = 500


class DomainError(ApplicationError):
    """Errors that are reported to the API server in the status message of
    an AdmissionResponse."""


class DomainDecodeError(DomainError):
    pass


class PatchEncodeError(DomainError):
    pass
