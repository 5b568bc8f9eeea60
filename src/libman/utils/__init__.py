from .project import get_project_name, get_project_version

__all__ = ["get_project_name", "get_project_version"]
