import stat
from pathlib import Path

from pdfvault.application.services.project_service import ProjectService
from pdfvault.core.config import load_paths


def test_init_provisions_archive_database_and_secret(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("PDFVAULT_HOME", raising=False)
    monkeypatch.delenv("PDFVAULT_TOKEN_SECRET", raising=False)
    paths = load_paths(tmp_path)
    service = ProjectService(paths)
    assert service.is_initialized() is False

    layout = service.init_project()

    assert service.is_initialized() is True
    assert layout.secret_path == paths.secret_path
    assert stat.S_IMODE(paths.secret_path.stat().st_mode) == 0o600
    assert set(layout.created) == {paths.data_dir, paths.archive_dir, paths.db_path, paths.secret_path}

    again = service.init_project()
    assert again.created == []
    assert again.secret_path == paths.secret_path


def test_init_leaves_secret_to_the_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("PDFVAULT_HOME", raising=False)
    monkeypatch.setenv("PDFVAULT_TOKEN_SECRET", "from-env")
    paths = load_paths(tmp_path)

    layout = ProjectService(paths).init_project()

    assert layout.secret_path is None
    assert not paths.secret_path.exists()


def test_init_can_skip_secret(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("PDFVAULT_HOME", raising=False)
    monkeypatch.delenv("PDFVAULT_TOKEN_SECRET", raising=False)
    paths = load_paths(tmp_path)

    layout = ProjectService(paths).init_project(provision_secret=False)

    assert layout.secret_path is None
    assert not paths.secret_path.exists()
    assert paths.db_path.exists()
