from .types import ContentIdentifier, InvalidContentIdError, Metadata

__all__ = ["ContentIdentifier", "InvalidContentIdError", "Metadata"]
