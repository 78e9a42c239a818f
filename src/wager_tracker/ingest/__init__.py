"""Importers that turn external text into CandidateMatch records."""

from .parser import parse_csv, parse_free_text

__all__ = ["parse_csv", "parse_free_text"]
