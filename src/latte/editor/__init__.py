"""Editor-side models: the document record and starter templates."""

from .document_model import Document, generate_document_id
from .templates import DEFAULT_TEMPLATE, TEMPLATES, WELCOME_TEMPLATE, resolve_template

__all__ = [
    "Document",
    "generate_document_id",
    "TEMPLATES",
    "DEFAULT_TEMPLATE",
    "WELCOME_TEMPLATE",
    "resolve_template",
]
