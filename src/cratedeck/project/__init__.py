"""Project lifecycle: discovery of existing projects and creation of new ones."""

from cratedeck.project.creator import CreationOutcome, ProjectCreator
from cratedeck.project.discovery import ProjectDiscovery, discover

__all__ = ["CreationOutcome", "ProjectCreator", "ProjectDiscovery", "discover"]
