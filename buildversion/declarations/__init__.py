"""Rendering and merging of version declarations into ``.var`` files."""

from .grammar import BlockMatch, BlockMatcher, Declaration, Span, find_declaration
from .patcher import GlobalVariablePatcher, PatchResult
from .synthesizer import DeclarationSynthesizer, SynthesisResult

__all__ = [
    "BlockMatch",
    "BlockMatcher",
    "Declaration",
    "DeclarationSynthesizer",
    "GlobalVariablePatcher",
    "PatchResult",
    "Span",
    "SynthesisResult",
    "find_declaration",
]
