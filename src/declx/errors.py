"""declx error hierarchy.

All declx-specific errors inherit from DeclxError for easy catching.
Everything is fail-fast: nothing here is retried.
"""


class DeclxError(Exception):
    """Base error for all declx operations."""


class BindError(DeclxError):
    """A property could not be resolved, bound, or observed."""


class LifecycleError(DeclxError):
    """An operation ran in the wrong lifecycle phase or outside a Root."""


class ConstructionError(DeclxError):
    """The component hierarchy produced no widget tree."""


class CyclicBindingError(DeclxError):
    """A compute graph or subscriber chain feeds back into itself."""


class VerificationError(DeclxError, AssertionError):
    """A test-harness assertion failed. pytest reports it like an assert."""
