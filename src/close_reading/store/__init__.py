from close_reading.store.memory import (
    MAX_HISTORY_SIZE,
    AnnotationSnapshot,
    InMemoryAnnotationStore,
)

__all__ = [
    "MAX_HISTORY_SIZE",
    "AnnotationSnapshot",
    "InMemoryAnnotationStore",
]
