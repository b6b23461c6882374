"""Render pipeline: debounced compile of source text into a previewable document."""

from .compiler import CompileOptions, Compiler, DocumentTree, MarkdownCompiler
from .pipeline import (
    PRESENTATION_RESOURCES,
    RenderArtifact,
    RenderFailure,
    RenderPipeline,
    RenderResult,
    RenderSuccess,
)

__all__ = [
    "CompileOptions",
    "Compiler",
    "DocumentTree",
    "MarkdownCompiler",
    "PRESENTATION_RESOURCES",
    "RenderArtifact",
    "RenderFailure",
    "RenderPipeline",
    "RenderResult",
    "RenderSuccess",
]
