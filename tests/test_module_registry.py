"""
Tests for ModuleRegistry.
"""

import logging

import pytest

import playernotify.cli  # noqa: F401 - registers every subsystem
from playernotify.module_registry import ModuleRegistry, module_registry


class TestModuleRegistry:
    """Tests for ModuleRegistry."""

    def setup_method(self):
        self.registry = ModuleRegistry()

    def test_registry_initialization(self):
        assert self.registry.get_module_names() == set()

    def test_register_module_returns_logger(self):
        logger = self.registry.register_module(
            name="test_module",
            description="A test module",
            logger_name="test.module",
            debug_flag="--debug-test",
        )

        assert isinstance(logger, logging.Logger)
        assert logger.name == "test.module"
        info = self.registry.get_module_info("test_module")
        assert info["description"] == "A test module"
        assert info["category"] == "core"
        assert self.registry.get_logger("test_module") is logger

    def test_unknown_logger(self):
        with pytest.raises(KeyError):
            self.registry.get_logger("missing")

    def test_unknown_module_info(self):
        assert self.registry.get_module_info("missing") == {}

    def test_reregistering_replaces(self):
        self.registry.register_module("m", "first", "test.m", "--debug-m")
        self.registry.register_module("m", "second", "test.m", "--debug-m")
        assert self.registry.get_module_info("m")["description"] == "second"
        assert len(self.registry.get_module_names()) == 1

    def test_categories_and_flags(self):
        self.registry.register_module("a", "A", "test.a", "--debug-a")
        self.registry.register_module("b", "B", "test.b", "--debug-b", category="output")

        assert set(self.registry.get_modules_by_category("output")) == {"b"}
        assert self.registry.get_debug_flags() == {"--debug-a": "a", "--debug-b": "b"}
        assert self.registry.get_logger_names() == {"test.a", "test.b"}


def test_global_registry_has_all_subsystems():
    """Test that importing the package registers each subsystem once."""
    assert {"listener", "supervisor", "track_metadata", "commands"} <= module_registry.get_module_names()
    flags = module_registry.get_debug_flags()
    assert flags["--debug-supervisor"] == "supervisor"
    assert flags["--debug-metadata"] == "track_metadata"
