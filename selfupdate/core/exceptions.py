class SelfUpdateError(Exception):
    """Base exception for self-update failures."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class UnknownVcsError(SelfUpdateError):
    def __init__(self, message: str = "No supported version control system detected.", details: dict | None = None):
        super().__init__(code="unknown_vcs", message=message, details=details)


class VcsError(SelfUpdateError):
    def __init__(self, message: str = "Version control command failed.", details: dict | None = None):
        super().__init__(code="vcs_failed", message=message, details=details)


class InvalidTargetError(SelfUpdateError):
    def __init__(self, message: str = "Link target directory does not exist.", details: dict | None = None):
        super().__init__(code="invalid_target", message=message, details=details)


class SymlinkError(SelfUpdateError):
    def __init__(self, message: str = "Unable to update web path link.", details: dict | None = None):
        super().__init__(code="symlink_failed", message=message, details=details)


class ConfigurationError(SelfUpdateError):
    def __init__(self, message: str = "Invalid deployment configuration.", details: dict | None = None):
        super().__init__(code="invalid_config", message=message, details=details)
