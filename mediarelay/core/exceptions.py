"""Custom exceptions for the media relay.

This module provides a hierarchy of exceptions with helpful error messages
so that every failure can be turned into an HTTP response at the handler
boundary.
"""


class RelayError(Exception):
    """Base exception for all relay errors.

    All relay exceptions inherit from this class, making it easy
    to catch all service-specific errors.
    """

    def __init__(self, message: str, hint: str | None = None):
        """Initialize the exception.

        Args:
            message: The error message
            hint: Optional hint for resolving the error
        """
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\nHint: {self.hint}"
        return self.message


class MissingFileError(RelayError):
    """Raised when an upload request carries no file part."""

    def __init__(self, message: str = "No se recibió ningún archivo"):
        super().__init__(message, "Send the file as multipart form field 'file'.")


class MissingURLError(RelayError):
    """Raised when a download request has no url parameter."""

    def __init__(self, message: str = "Falta la URL del archivo"):
        super().__init__(message, "Pass the file location as the 'url' query parameter.")


class PayloadTooLargeError(RelayError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, max_bytes: int, actual: int | None = None):
        """Initialize the size error.

        Args:
            max_bytes: The configured limit
            actual: Bytes seen when the limit was crossed, if known
        """
        self.max_bytes = max_bytes
        self.actual = actual
        super().__init__(
            f"Request body must be at most {max_bytes} bytes",
            "Upload a smaller file.",
        )


class StagingError(RelayError):
    """Raised when an upload cannot be written to the staging directory."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message, "Check that UPLOAD_DIR exists and is writable.")


class StorageError(RelayError):
    """Raised when the remote storage provider rejects or fails an upload."""

    def __init__(
        self,
        message: str,
        public_id: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the storage error.

        Args:
            message: The error message
            public_id: The public identifier the upload was sent under
            original_error: The original exception
        """
        self.public_id = public_id
        self.original_error = original_error

        hint = None
        lowered = message.lower()
        if "invalid signature" in lowered or "api_secret" in lowered:
            hint = "Check your CLOUDINARY_API_SECRET environment variable."
        elif "unknown api_key" in lowered or "invalidaccesskeyid" in lowered:
            hint = "Check the access key configured for the storage backend."
        elif "accessdenied" in lowered:
            hint = "Check the bucket policy and IAM permissions for uploads."

        super().__init__(message, hint)


class StorageConflictError(StorageError):
    """Raised when the public identifier is already taken at the provider."""

    def __init__(self, public_id: str, original_error: Exception | None = None):
        super().__init__(
            f"Resource '{public_id}' already exists",
            public_id=public_id,
            original_error=original_error,
        )
        self.hint = "Rename the file before uploading it again."


class StorageConfigurationError(RelayError):
    """Raised when the storage backend configuration is invalid."""

    def __init__(
        self,
        message: str | None = None,
        missing_fields: list[str] | None = None,
    ):
        """Initialize the configuration error.

        Args:
            message: Custom error message
            missing_fields: List of missing configuration variables
        """
        self.missing_fields = missing_fields or []

        if missing_fields:
            fields_str = ", ".join(missing_fields)
            message = f"Missing required configuration: {fields_str}"
            hint = "Set these as environment variables or in your .env file."
        else:
            hint = "Check the STORAGE_BACKEND setting."

        super().__init__(message or "Invalid storage configuration", hint)


class DownloadError(RelayError):
    """Raised when the outbound fetch for a download fails."""

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the download error.

        Args:
            url: The URL that was fetched
            status_code: Upstream status code, when a response arrived
            original_error: The original exception
        """
        self.url = url
        self.status_code = status_code
        self.original_error = original_error

        if status_code is not None:
            message = f"Upstream responded {status_code} for {url}"
        elif original_error is not None:
            message = f"Could not fetch {url}: {original_error}"
        else:
            message = f"Could not fetch {url}"

        super().__init__(message)
