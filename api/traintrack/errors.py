class CertificateError(Exception):
    """Base class for certificate issuance and rendering errors."""

    code = "CERTIFICATE_ERROR"


class ValidationError(CertificateError, ValueError):
    """The completion event cannot produce a certificate. Fix the input and retry."""

    code = "VALIDATION_ERROR"


class RenderFailure(CertificateError, RuntimeError):
    """The drawing surface could not be created or finalized. No bytes were produced."""

    code = "RENDER_FAILURE"


class CertificateNotFound(CertificateError, LookupError):
    code = "NOT_FOUND"
