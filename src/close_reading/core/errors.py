"""Exceptions raised by the close-reading core."""


class CloseReadingError(Exception):
    """Base exception for all close-reading errors."""


class AnnotationNotFoundError(CloseReadingError, KeyError):
    """Raised when an annotation id is not present in the store."""

    def __init__(self, annotation_id: str) -> None:
        super().__init__(annotation_id)
        self.annotation_id = annotation_id

    def __str__(self) -> str:
        return f"Annotation not found: {self.annotation_id}"


class DuplicateAnnotationError(CloseReadingError, ValueError):
    """Raised when an annotation id is added to a store that already holds it."""


class UnknownAnnotationTypeError(CloseReadingError, ValueError):
    """Raised when ingested data names an annotation type outside the closed set."""


class AnnotatedMarkdownError(CloseReadingError, ValueError):
    """Raised when a document is not a readable annotated-markdown export."""


class ReadOnlyDocumentError(CloseReadingError):
    """Raised when the code text is replaced while the overlay is annotating."""


class InvalidLineRangeError(CloseReadingError, ValueError):
    """Raised when an annotation range does not start on a 1-based line."""
