"""Validation package."""

from snapspend.validation.validator import CandidateScreener

__all__ = ["CandidateScreener"]
