"""System bootstrap: first-run setup of auth, site config and metadata."""

from .coordinator import (
    BootstrapCoordinator,
    BootstrapError,
    BootstrapState,
    ResetForbiddenError,
)

__all__ = [
    "BootstrapCoordinator",
    "BootstrapError",
    "BootstrapState",
    "ResetForbiddenError",
]
