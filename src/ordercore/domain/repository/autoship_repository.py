"""Abstract repositories for the Autoship aggregate and its runs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ordercore.domain.model.autoship import Autoship, AutoshipRun


class AutoshipRepository(ABC):

    @abstractmethod
    def get_by_id(self, autoship_id: str) -> Autoship | None:
        """Return an autoship by its ID, or None if not found."""

    @abstractmethod
    def list_due(self, as_of: datetime) -> list[Autoship]:
        """Active autoships with ``next_run_at <= as_of``, earliest first."""

    @abstractmethod
    def add(self, autoship: Autoship) -> None:
        """Stage a new autoship."""

    @abstractmethod
    def save(self, autoship: Autoship) -> None:
        """Stage an updated autoship.

        The commit fails if its status or ``next_run_at`` changed since
        it was read.
        """


class AutoshipRunRepository(ABC):

    @abstractmethod
    def get(self, autoship_id: str, scheduled_at: datetime) -> AutoshipRun | None:
        """Return the run for one delivery cycle, or None."""

    @abstractmethod
    def list_for(self, autoship_id: str) -> list[AutoshipRun]:
        """Every run of an autoship, oldest cycle first."""

    @abstractmethod
    def save(self, run: AutoshipRun) -> None:
        """Stage a new or updated run; one run per cycle."""
