"""Root of the Helios Waterfall exception hierarchy."""


class DomainException(Exception):
    """
    Base exception for analysis and provider errors.

    `code` is the stable machine-readable identifier returned to API
    callers; `http_status` is the status the API layer answers with when
    the exception escapes the pipeline.
    """

    http_status = 400

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}
