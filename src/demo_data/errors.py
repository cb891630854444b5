"""
Exceptions raised by the demo data stores and generators.
"""


class DemoDataError(Exception):
    """Base exception for demo data generation."""
    pass


class IdentityCreationError(DemoDataError):
    """Raised when a user identity cannot be created (duplicate login/email)."""
    pass


class ContentCreationError(DemoDataError):
    """Raised when a content item cannot be created."""
    pass


class RecordNotFoundError(DemoDataError):
    """Raised when a dependent record is missing."""
    pass


class DemoModeError(DemoDataError):
    """Raised when demo mode is toggled from the wrong state."""
    pass


class SeedDataError(DemoDataError):
    """Raised when the seed data file is missing or invalid."""
    pass
