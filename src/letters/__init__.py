"""Creditor letter building — field resolution policy and per-strategy templates."""

from src.letters.fields import FieldResolver, format_date, format_euro
from src.letters.templates import build_letter

__all__ = [
    "FieldResolver",
    "build_letter",
    "format_date",
    "format_euro",
]
