# clareia/errors.py
from typing import Optional


class ExtractionError(Exception):
    """Base class for every failure the statement pipeline can report."""

    kind = "extraction_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(ExtractionError):
    """The extraction service could not be reached (connection error or timeout)."""

    kind = "transport_error"


class ServiceError(ExtractionError):
    """The extraction service answered with a non-success HTTP status."""

    kind = "service_error"

    def __init__(self, status: int, body: str, message: Optional[str] = None):
        super().__init__(message or f"Extraction service returned HTTP {status}")
        self.status = status
        self.body = body


class MalformedEnvelopeError(ExtractionError):
    """The response lacks candidates[0].content.parts[0].text."""

    kind = "malformed_envelope"


class NoJSONFoundError(ExtractionError):
    kind = "no_json_found"


class JSONParseError(ExtractionError):
    kind = "json_parse_error"


class SchemaValidationError(ExtractionError):
    kind = "schema_validation_error"
