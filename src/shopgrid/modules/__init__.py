"""Feature modules with auto-discovery."""

import logging
from importlib import import_module
from pathlib import Path

from fastapi import APIRouter


logger = logging.getLogger(__name__)


def discover_modules() -> list[APIRouter]:
    """Auto-discover and return routers from all modules.

    This function scans the modules directory for subdirectories
    that expose a ``router`` attribute in their __init__.py.

    Returns:
        List of FastAPI routers from discovered modules, in name order.
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if path.is_dir() and not path.name.startswith("_"):
            module = import_module(f"shopgrid.modules.{path.name}")
            if hasattr(module, "router"):
                routers.append(module.router)
                logger.info("Loaded module: %s", path.name)

    return routers
