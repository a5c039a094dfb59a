from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INDEX_CORRUPTED = "INDEX_CORRUPTED"
    UNSUPPORTED_PLATFORM = "UNSUPPORTED_PLATFORM"
    INSTALL_FAILED = "INSTALL_FAILED"
    UNINSTALL_FAILED = "UNINSTALL_FAILED"
    INVALID_LOCATION = "INVALID_LOCATION"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    UNKNOWN_FONT_TYPE = "UNKNOWN_FONT_TYPE"


class FontkeeperError(Exception):
    """Raised for every expected failure condition.

    Carries a machine-readable code and a remediation hint so the calling
    layer can report cause and next step without inspecting the message.
    Absent fonts, directories and cache entries are never errors; they are
    returned as empty results or ``None``.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class IndexCorruptedError(FontkeeperError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.INDEX_CORRUPTED,
            message=f"Index file is corrupted ({reason}): {path}",
            suggestion="Rebuild the index to regenerate it from the font directories.",
            recoverable=True,
        )
        self.path = path


class UnsupportedPlatformError(FontkeeperError):
    def __init__(self, platform: str, purpose: str) -> None:
        super().__init__(
            code=ErrorCode.UNSUPPORTED_PLATFORM,
            message=f"Unsupported platform for {purpose}: {platform}",
            suggestion="Configure the font directory explicitly in fontkeeper.yaml.",
        )
        self.platform = platform


class InstallError(FontkeeperError):
    def __init__(self, target: str, reason: str, suggestion: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.INSTALL_FAILED,
            message=f"Could not install font to {target}: {reason}",
            suggestion=suggestion
            or "Check that the target directory is writable, or choose another location.",
        )
        self.target = target


class UninstallError(FontkeeperError):
    def __init__(self, target: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.UNINSTALL_FAILED,
            message=f"Could not remove font {target}: {reason}",
            suggestion="Check file permissions; system locations need elevated privileges.",
        )
        self.target = target


class InvalidLocationError(FontkeeperError):
    def __init__(self, value: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_LOCATION,
            message=f"Invalid install location: {value!r}",
            suggestion="Valid options: fontist, user, system.",
        )


class DownloadError(FontkeeperError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.DOWNLOAD_FAILED,
            message=f"Could not download {url}: {reason}",
            suggestion="Check your internet connection and try again.",
            recoverable=True,
        )
        self.url = url


class UnknownFontTypeError(FontkeeperError):
    def __init__(self, path: str) -> None:
        super().__init__(
            code=ErrorCode.UNKNOWN_FONT_TYPE,
            message=f"Unknown font type: {path}",
            suggestion="Only ttf, otf, ttc, otc, woff and woff2 files can be indexed.",
        )
        self.path = path
