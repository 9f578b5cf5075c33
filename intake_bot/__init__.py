"""Role-application intake for a Discord community.

This module exposes the record models, the collection store and the
registries so that consumers of the package can simply import them from
``intake_bot``.
"""

from .core.models import (
    Applicant,
    Application,
    ApplicationForm,
    ApplicationSource,
    ApplicationStatus,
    BaseEntry,
    BaseState,
    ReviewDecision,
)
from .core.storage import CollectionStore, JSONCollection
from .data import ApplicationLifecycle, BaseRegistry, FormRegistry, ReviewOutcome

__all__ = [
    "Applicant",
    "Application",
    "ApplicationForm",
    "ApplicationLifecycle",
    "ApplicationSource",
    "ApplicationStatus",
    "BaseEntry",
    "BaseRegistry",
    "BaseState",
    "CollectionStore",
    "FormRegistry",
    "JSONCollection",
    "ReviewDecision",
    "ReviewOutcome",
]
