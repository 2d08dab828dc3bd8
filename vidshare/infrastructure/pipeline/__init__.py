# vidshare/infrastructure/pipeline/__init__.py
"""
Pipeline compilation and execution over the SQL store
"""

from .compiler import COLLECTIONS, CompiledQuery, PipelineCompileError, PipelineCompiler
from .executor import PipelineExecutor, reshape_row
from .search import SubstringSearchBackend, TextSearchBackend

__all__ = [
    "COLLECTIONS",
    "CompiledQuery",
    "PipelineCompileError",
    "PipelineCompiler",
    "PipelineExecutor",
    "reshape_row",
    "SubstringSearchBackend",
    "TextSearchBackend",
]
