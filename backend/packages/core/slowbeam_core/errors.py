"""
Exception hierarchy.

Errors raised by the sync pipeline and its collaborators.
"""


class SlowbeamError(Exception):
    """Base class for all Slowbeam errors."""


class MissingCredentialError(SlowbeamError):
    """A required credential or identifier is not configured."""


class TranslationProviderError(SlowbeamError):
    """The translation provider returned an unusable response."""


class ContentSourceError(SlowbeamError):
    """The content source could not produce the requested data."""


class PostGroupError(SlowbeamError):
    """Internal invariant violation while grouping posts."""


class KVStoreError(SlowbeamError):
    """The key-value store rejected a command."""
