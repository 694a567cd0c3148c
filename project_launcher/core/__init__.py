"""Core modules for project-launcher."""

from project_launcher.core.config import ConfigError, LauncherConfig, load_config
from project_launcher.core.orchestrator import GitOrchestrator

__all__ = ["ConfigError", "GitOrchestrator", "LauncherConfig", "load_config"]
