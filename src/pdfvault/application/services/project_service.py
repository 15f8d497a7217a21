from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from pdfvault.core.config import TOKEN_SECRET_ENV, AppPaths, load_token_secret
from pdfvault.core.files import ensure_directory
from pdfvault.infrastructure.db.sqlite import initialize_schema


@dataclass(slots=True)
class VaultLayout:
    db_path: Path
    archive_dir: Path
    # None when the signing secret comes from the environment.
    secret_path: Path | None
    created: list[Path] = field(default_factory=list)


class ProjectService:
    """Provisions a vault: data dir, archive, resource database and token secret."""

    def __init__(self, paths: AppPaths) -> None:
        self.paths = paths

    def init_project(self, *, provision_secret: bool = True) -> VaultLayout:
        created = [path for path in (self.paths.data_dir, self.paths.archive_dir) if not path.exists()]
        ensure_directory(self.paths.archive_dir)

        if not self.paths.db_path.exists():
            created.append(self.paths.db_path)
        initialize_schema(self.paths.db_path)

        secret_path = None
        if provision_secret and not os.getenv(TOKEN_SECRET_ENV):
            secret_path = self.paths.secret_path
            if not secret_path.exists():
                created.append(secret_path)
            load_token_secret(self.paths)

        return VaultLayout(
            db_path=self.paths.db_path,
            archive_dir=self.paths.archive_dir,
            secret_path=secret_path,
            created=created,
        )

    def is_initialized(self) -> bool:
        return self.paths.db_path.exists()
