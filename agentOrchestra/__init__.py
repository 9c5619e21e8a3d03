"""Top-level package exports for agentOrchestra."""

__version__ = "0.1.0"

from .runtime.app import Application, build_application

__all__ = ["Application", "build_application", "__version__"]
