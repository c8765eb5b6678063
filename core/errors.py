#!/usr/bin/env python3
"""
Typed errors raised by the matching core.

Partial data is never an error: sparse profiles and jobs degrade to low or
neutral scores. These exceptions cover absent input, missing records,
invalid requests, store failures and timeouts.
"""


class MatchingError(Exception):
    """Base exception for matching core errors."""
    pass


class InvalidInputError(MatchingError, ValueError):
    """Raised when a required argument is absent (None)."""
    pass


class NotFoundError(MatchingError, LookupError):
    """Raised when a referenced record does not exist."""
    pass


class ProfileNotFoundError(NotFoundError):
    """Raised when a candidate profile is not found for a user."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Candidate profile not found for user {user_id}")


class JobNotFoundError(NotFoundError):
    """Raised when a job is not found."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class ValidationError(MatchingError):
    """Raised when request parameters fail validation."""
    pass


class InvalidRequestError(ValidationError):
    """Raised when a recommendation request is malformed or exceeds limits."""
    pass


class TransientStoreError(MatchingError):
    """Raised when an underlying store call fails."""
    pass


class RequestTimeoutError(MatchingError, TimeoutError):
    """Raised when a request exceeds its deadline."""
    pass


class ConfigurationError(MatchingError):
    """Raised when configuration is invalid."""
    pass
