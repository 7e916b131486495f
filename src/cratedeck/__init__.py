"""cratedeck: manage a directory of Rust projects from the terminal.

Provides:
- discovery of projects under a root directory with their git state
- creation of new projects via `cargo new`
- opening a project in the configured editor
"""

__version__ = "0.1.0"

from cratedeck.models import CreationRequest, Edition, Project, ProjectKind, VcsStatus

__all__ = ["__version__", "CreationRequest", "Edition", "Project", "ProjectKind", "VcsStatus"]
