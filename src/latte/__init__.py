"""Latte: session, render and persistence engine for a live-preview editor."""

from .bootstrap import configure_logging, create_session, load_settings
from .domain import DocumentIndex, DocumentStore, SessionController, SessionMode
from .editor import Document
from .render import RenderFailure, RenderPipeline, RenderSuccess

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "configure_logging",
    "create_session",
    "load_settings",
    "Document",
    "DocumentIndex",
    "DocumentStore",
    "RenderFailure",
    "RenderPipeline",
    "RenderSuccess",
    "SessionController",
    "SessionMode",
]
