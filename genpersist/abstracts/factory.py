##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
A name-keyed registry of pluggable implementations.

`BaseFactory` maps names (and aliases) to classes and builds instances from a
settings dictionary, the way [`connect_from_config`][config.configfile.connect_from_config]
turns the `database.type` setting into a [`Database`][backends.database.Database].
Implementations shipped by other distributions are found lazily through an
entry point group, the first time a name is not already registered.
"""

import logging
from abc import ABC, abstractmethod
from importlib.metadata import entry_points
from typing import Any, Dict, List, Tuple


LOG = logging.getLogger(__name__)


class BaseFactory(ABC):
    """
    Registry of named implementations of one interface.

    Subclasses register their built-in implementations, check that registered
    classes implement the interface, and name the entry point group plugins
    are published under.

    Attributes:
        _registry (Dict[str, Any]): Canonical name to implementation class.
        _aliases (Dict[str, str]): Alias to canonical name.

    Methods:
        register: Register an implementation under a name and optional aliases.
        list_available: Return the canonical names of all known implementations.
        create: Build an implementation by name or alias.
    """

    def __init__(self):
        self._registry: Dict[str, Any] = {}
        self._aliases: Dict[str, str] = {}
        self._plugins_loaded = False
        self._register_builtins()

    @abstractmethod
    def _register_builtins(self):
        """Register the implementations that ship with Genpersist."""
        raise NotImplementedError("Subclasses of `BaseFactory` must implement a `_register_builtins` method.")

    @abstractmethod
    def _validate_component(self, component_class: Any):
        """
        Check a class before it is registered.

        Args:
            component_class: The class to check.

        Raises:
            TypeError: If `component_class` does not implement the interface.
        """
        raise NotImplementedError("Subclasses of `BaseFactory` must implement a `_validate_component` method.")

    @abstractmethod
    def _entry_point_group(self) -> str:
        """The entry point group plugins are published under."""
        raise NotImplementedError("Subclasses of `BaseFactory` must implement an `_entry_point_group` method.")

    def _raise_component_error_class(self, msg: str):
        """
        Report a name nothing is registered under.

        Args:
            msg: The error message.

        Raises:
            ValueError: Unless a subclass raises something more specific.
        """
        raise ValueError(msg)

    def _discover_plugins(self):
        """Register every loadable plugin of the entry point group. Runs at most once."""
        if self._plugins_loaded:
            return
        self._plugins_loaded = True
        for entry_point in entry_points(group=self._entry_point_group()):
            try:
                self.register(entry_point.name, entry_point.load())
            except Exception as e:  # pylint: disable=broad-exception-caught
                LOG.warning(f"Skipping plugin '{entry_point.name}' of '{self._entry_point_group()}': {e}")
                continue
            LOG.info(f"Loaded plugin '{entry_point.name}' from '{self._entry_point_group()}'")

    def register(self, name: str, component_class: Any, aliases: List[str] = None):
        """
        Register an implementation.

        Args:
            name: Canonical name of the implementation.
            component_class: The implementing class.
            aliases: Other names the implementation can be created by.

        Raises:
            TypeError: If `component_class` fails validation.
        """
        self._validate_component(component_class)
        self._registry[name] = component_class
        for alias in aliases or []:
            self._aliases[alias] = name
        LOG.debug(f"Registered '{name}' ({component_class.__name__}) with aliases {aliases or []}")

    def list_available(self) -> List[str]:
        """
        Return the canonical names of built-in and plugin implementations.

        Returns:
            The registered names.
        """
        self._discover_plugins()
        return list(self._registry)

    def _resolve(self, component_type: str) -> Tuple[str, Any]:
        """Canonical name and class for a name or alias, loading plugins if the name is unknown."""
        canonical_name = self._aliases.get(component_type, component_type)
        if canonical_name not in self._registry:
            self._discover_plugins()
            canonical_name = self._aliases.get(component_type, component_type)
        if canonical_name not in self._registry:
            self._raise_component_error_class(
                f"'{component_type}' is not supported. Choose one of: {', '.join(self.list_available())}"
            )
        return canonical_name, self._registry[canonical_name]

    def create(self, component_type: str, config: Dict = None) -> Any:
        """
        Build an implementation.

        Args:
            component_type: Name or alias of the implementation.
            config: Keyword arguments for the implementation's constructor.

        Returns:
            The new instance.

        Raises:
            ValueError: If the constructor rejects `config`.
        """
        canonical_name, component_class = self._resolve(component_type)
        try:
            instance = component_class(**(config or {}))
        except TypeError as e:
            raise ValueError(f"Cannot create '{canonical_name}' with settings {config or {}}: {e}") from e
        LOG.debug(f"Created '{canonical_name}'")
        return instance
