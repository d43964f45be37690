"""Publish ordering for interdependent projects."""

from .projects import Project, ProjectFileError, read_project_references
from .sequencer import PublishOrder, order_projects

__all__ = [
    "Project",
    "ProjectFileError",
    "PublishOrder",
    "order_projects",
    "read_project_references",
]
