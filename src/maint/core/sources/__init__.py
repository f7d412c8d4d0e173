"""
Work-order sources.

Each backing system (the native queue, the external work-order platform)
is reached through a SourceAdapter. Importing this package registers the
built-in implementations.
"""

from .backend import RejectedRecord, SourceAdapter, get_source, list_sources, register_source
from .external import ExternalWorkOrderSource, Meld, meld_to_work_item, parse_meld
from .fake import FakeExternalSource
from .native import NativeQueueSource

__all__ = [
    "ExternalWorkOrderSource",
    "FakeExternalSource",
    "Meld",
    "NativeQueueSource",
    "RejectedRecord",
    "SourceAdapter",
    "get_source",
    "list_sources",
    "meld_to_work_item",
    "parse_meld",
    "register_source",
]
