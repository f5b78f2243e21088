"""
Field Discovery & Mapping

Classifies question nodes, builds re-resolvable locator chains, extracts
option/grid vocabularies and fuzzy-matches labels.
"""

from .node import DocumentNode, element, normalize_space
from .field import Field, FieldType, CHOICE_TYPES, GRID_TYPES, TEXT_TYPES
from .classifier import classify
from .locator import Locator, LocatorStrategy, locate, resolve, resolve_chain, build_relative_path
from .options import extract_options, extract_grid_rows, extract_grid_columns, option_text, GridRow
from .fuzzy import fuzzy_match, string_similarity, levenshtein_distance
from .discovery import discover, find_candidates, question_container

__all__ = [
    "DocumentNode",
    "element",
    "normalize_space",
    "Field",
    "FieldType",
    "CHOICE_TYPES",
    "GRID_TYPES",
    "TEXT_TYPES",
    "classify",
    "Locator",
    "LocatorStrategy",
    "locate",
    "resolve",
    "resolve_chain",
    "build_relative_path",
    "extract_options",
    "extract_grid_rows",
    "extract_grid_columns",
    "option_text",
    "GridRow",
    "fuzzy_match",
    "string_similarity",
    "levenshtein_distance",
    "discover",
    "find_candidates",
    "question_container",
]
