"""Error taxonomy for the file-transfer content pipeline."""

from __future__ import annotations


class FileTransferContentError(Exception):
    """Base class for every error raised by the pipeline."""


class ContentAbsent(FileTransferContentError):
    """No applicable content was found; callers usually skip silently."""


class NotMultipart(ContentAbsent):
    """The body carries no usable boundary delimiter."""


class NoMatchingPart(ContentAbsent):
    """The body is multipart but no part matches the requested types."""

    def __init__(self, candidate_types) -> None:
        self.candidate_types = tuple(candidate_types)
        super().__init__(f"No part matches any of: {', '.join(self.candidate_types)}")


class PreviewError(FileTransferContentError):
    """Preview content is present but cannot be produced."""


class DecodeFailure(PreviewError):
    pass


class InvalidDimensions(PreviewError):
    pass


class SizeBudgetExceeded(PreviewError):
    pass


class TransferMetadataError(FileTransferContentError):
    """A transfer metadata document is present but invalid."""


class MalformedDocument(TransferMetadataError):
    pass


class MissingField(TransferMetadataError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing required field '{name}'")


class InvalidSize(TransferMetadataError):
    pass


class InvalidMimeType(TransferMetadataError):
    pass


class UnknownMimeExtension(FileTransferContentError):
    def __init__(self, mime_type: str) -> None:
        self.mime_type = mime_type
        super().__init__(f"No file extension known for MIME type '{mime_type}'")


class ContentStoreError(FileTransferContentError):
    """The reference content store refused or failed a write."""
