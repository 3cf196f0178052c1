"""
This module contains the exceptions raised by crxsetup.
"""


class CrxSetupException(Exception):
    """
    Base class for all crxsetup errors. ``kind`` names the failure category
    in logs and download summaries.
    """

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class MalformedContainer(CrxSetupException):
    """
    The downloaded bytes are too short, or their header points past the end
    of the buffer.
    """

    kind = "malformed_container"


class NetworkError(CrxSetupException):
    """
    The download request failed or returned a non-success status.
    """

    kind = "network_error"


class FilesystemError(CrxSetupException):
    """
    Creating directories, writing the temporary archive or extracting it failed.
    """

    kind = "filesystem_error"
