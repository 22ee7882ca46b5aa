"""Project folders under the planner root.

Each non-hidden subdirectory of the root is a project; its task count is
just the number of .md files and is not kept in sync with the store.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from mdplanner.errors import PersistenceError, ValidationError
from mdplanner.models import Project
from mdplanner.schema import title_to_slug
from mdplanner.storage import RECORD_SUFFIX

logger = logging.getLogger(__name__)


class ProjectCatalog:
    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()
        self._projects: List[Project] = []

    @property
    def projects(self) -> List[Project]:
        return list(self._projects)

    def scan(self) -> Tuple[List[Project], List[str]]:
        """Rescan the root (creating it when missing)."""
        errors: List[str] = []
        found: List[Project] = []
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            for entry in sorted(self.root.iterdir()):
                if not entry.is_dir() or entry.name.startswith("."):
                    continue
                count = sum(1 for f in entry.iterdir() if f.is_file() and f.suffix == RECORD_SUFFIX)
                found.append(Project(name=entry.name, path=str(entry), task_count=count))
        except OSError as exc:
            logger.warning("Failed to scan projects in %s: %s", self.root, exc)
            errors.append(f"Failed to scan projects: {exc}")
        self._projects = found
        return list(found), errors

    def get(self, name: str) -> Optional[Project]:
        for project in self._projects:
            if project.name == name:
                return project
        return None

    def resolve_path(self, name: Optional[str]) -> Path:
        """Folder for project name; the root itself when no project is active."""
        if not name:
            return self.root
        project = self.get(name)
        return Path(project.path) if project else self.root / name

    def create(self, name: str) -> Project:
        slug = title_to_slug(name)
        if not slug:
            raise ValidationError(f'project name "{name}" has no usable characters')
        path = self.root / slug
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"could not create project folder {path}: {exc}") from exc
        project = self.get(slug) or Project(name=slug, path=str(path), task_count=0)
        if project not in self._projects:
            self._projects.append(project)
        logger.info("Created project %s at %s", slug, path)
        return project
