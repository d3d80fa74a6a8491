from .const import ERRORS


class OffsetError(Exception):
    """Base error for a patch run. ``code`` keys into ERRORS."""

    code = ""

    def __init__(self, detail: str | None = None):
        self.detail = detail
        super().__init__(str(self))

    @property
    def message(self) -> str:
        return ERRORS[self.code]

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message.rstrip('.')}: {self.detail}"
        return self.message


class NoSplitsFound(OffsetError):
    code = "E_NO_SPLITS"


class NoBlocksInFirstSplit(OffsetError):
    code = "E_NO_BLOCKS"


class DecodeFailure(OffsetError):
    code = "E_DECODE"


class EncodeFailure(OffsetError):
    code = "E_ENCODE"


class ContainerIoFailure(OffsetError):
    code = "E_CONTAINER_IO"


class FileIoFailure(OffsetError):
    code = "E_FILE_IO"


class SourceNotFound(OffsetError):
    code = "E_SOURCE_NOT_FOUND"
