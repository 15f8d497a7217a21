from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

from pdfvault.application.services.project_service import ProjectService
from pdfvault.core.config import AppPaths
from pdfvault.core.errors import ProjectNotInitializedError
from pdfvault.infrastructure.archive.store import ArchiveStore
from pdfvault.infrastructure.db.repos.resource_repo import ResourceRepo


@dataclass(slots=True)
class CLIContext:
    paths: AppPaths
    console: Console

    def require_initialized(self) -> None:
        if not ProjectService(self.paths).is_initialized():
            raise ProjectNotInitializedError(
                f"Project is not initialized. Run 'pdfvault init' first in {self.paths.project_root}"
            )

    def resource_repo(self) -> ResourceRepo:
        return ResourceRepo(self.paths.db_path)

    def archive_store(self) -> ArchiveStore:
        return ArchiveStore(self.paths.archive_dir)
