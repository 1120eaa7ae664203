from __future__ import annotations


class MarkWordError(Exception):
    """Failure that aborts a whole export and is reported to the user."""

    prefix = "Export failed"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    @property
    def user_message(self) -> str:
        return f"{self.prefix}: {self.detail}"


class ContentUnavailable(MarkWordError):
    prefix = "Could not read document content"


class SerializationFailure(MarkWordError):
    prefix = "Could not build DOCX"


class PersistenceFailure(MarkWordError):
    prefix = "Could not save export"


class ConfigError(MarkWordError):
    prefix = "Invalid settings"
