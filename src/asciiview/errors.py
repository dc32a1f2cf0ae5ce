"""Exceptions raised while decoding mesh files."""

from __future__ import annotations


class DecodeError(ValueError):
    """Base class for every mesh decode failure."""


class FormatError(DecodeError):
    """The input is structurally invalid (bad magic, missing chunk or accessor, truncated data)."""


class EmptyResult(DecodeError):
    """The input parsed but produced no vertices."""
