"""Registries backed by the JSON collections in ``Settings.data_dir``."""

from __future__ import annotations

from dataclasses import dataclass

from ..adapters.base import AuthorityAdapter
from ..config import Settings
from ..core.storage import CollectionStore
from .applications import ApplicationLifecycle, ReviewOutcome
from .bases import BaseRegistry
from .forms import FormRegistry


@dataclass
class Services:
    """Everything the command layer needs, built once at startup."""

    settings: Settings
    forms: FormRegistry
    bases: BaseRegistry
    applications: ApplicationLifecycle
    authority: AuthorityAdapter


def build_services(settings: Settings, authority: AuthorityAdapter) -> Services:
    store = CollectionStore(settings.data_dir)
    forms = FormRegistry(store, settings)
    return Services(
        settings=settings,
        forms=forms,
        bases=BaseRegistry(store),
        applications=ApplicationLifecycle(store, forms, authority, settings),
        authority=authority,
    )


__all__ = [
    "ApplicationLifecycle",
    "BaseRegistry",
    "FormRegistry",
    "ReviewOutcome",
    "Services",
    "build_services",
]
