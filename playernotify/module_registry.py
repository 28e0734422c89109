"""
Registry of logging subsystems for the listener, supervisor and command layers.

Each subsystem gets its own named logger and a ``--debug-<name>`` CLI flag so
DEBUG output can be narrowed to the parts of the pipeline being investigated.
"""

import logging
from typing import Dict, Set


class ModuleRegistry:
    """Registry of subsystems with their loggers and debug flags."""

    def __init__(self):
        """Initialize an empty registry."""
        self._modules: Dict[str, dict] = {}

    def register_module(
        self,
        name: str,
        description: str,
        logger_name: str,
        debug_flag: str,
        category: str = "core",
    ) -> logging.Logger:
        """Register a subsystem and return its logger.

        Registering the same name twice replaces the earlier entry, which keeps
        module reloads in tests harmless.
        """
        logger = logging.getLogger(logger_name)
        self._modules[name] = {
            "description": description,
            "logger_name": logger_name,
            "debug_flag": debug_flag,
            "logger": logger,
            "category": category,
        }
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        """Get the logger of a registered subsystem."""
        if name not in self._modules:
            raise KeyError(f"Unknown subsystem: {name}")
        return self._modules[name]["logger"]

    def get_modules_by_category(self, category: str) -> Dict[str, dict]:
        """Get all subsystems in a category."""
        return {name: info for name, info in self._modules.items() if info["category"] == category}

    def get_module_names(self) -> Set[str]:
        return set(self._modules.keys())

    def get_logger_names(self) -> Set[str]:
        """Get all logger names for debug filtering."""
        return {info["logger_name"] for info in self._modules.values()}

    def get_debug_flags(self) -> Dict[str, str]:
        """Get mapping of debug CLI flags to subsystem names."""
        return {info["debug_flag"]: name for name, info in self._modules.items()}

    def get_module_info(self, name: str) -> dict:
        """Get information about a subsystem, or an empty dict."""
        return self._modules.get(name, {})


# Global registry instance
module_registry = ModuleRegistry()
