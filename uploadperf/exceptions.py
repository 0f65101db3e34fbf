"""
Error taxonomy for the upload performance harness.

Every error raised by the harness derives from HarnessError so the CLI can
turn any of them into a one-line message and a non-zero exit status.
"""


class HarnessError(Exception):
    """Base class for all harness errors"""


class ConfigError(HarnessError):
    """Configuration file or option values are unusable"""


class InvalidSize(HarnessError, ValueError):
    """Size argument is not a valid human readable byte count"""

    def __init__(self, text: str, reason: str = "invalid size number given"):
        super().__init__(f"{reason}: {text!r}")
        self.text = text


class SessionError(HarnessError):
    """A worker could not establish its storage session"""


class UploadError(HarnessError):
    """A single upload attempt failed"""

    def __init__(self, object_name: str, cause: BaseException):
        super().__init__(f"upload of {object_name} failed: {cause}")
        self.object_name = object_name
        self.cause = cause


class WriteError(HarnessError):
    """The final result record could not be persisted"""
