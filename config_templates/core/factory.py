"""Component Factory for strategy instantiation.

The Factory Pattern allows callers to instantiate the abstraction and
resolution strategies at runtime based on configuration or environment
variables.
"""

import logging

from config_templates.core.config import Settings, get_settings
from config_templates.interfaces.template import BaseTemplateAbstractor, BaseTemplateResolver
from config_templates.strategies.template_engine import TemplateAbstractor, TemplateResolver

logger = logging.getLogger(__name__)


class ComponentFactory:
    """Factory for creating engine components based on configuration.

    Example:
        ```python
        factory = ComponentFactory(get_settings())

        abstractor = factory.get_abstractor()
        resolver = factory.get_resolver()
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the factory with optional settings.

        Args:
            settings: Engine settings. If None, uses global settings.
        """
        self._settings = settings or get_settings()
        self._abstractor_cache: BaseTemplateAbstractor | None = None
        self._resolver_cache: BaseTemplateResolver | None = None

    @property
    def settings(self) -> Settings:
        """Settings the strategies are built from."""
        return self._settings

    def get_abstractor(self, abstractor_type: str | None = None) -> BaseTemplateAbstractor:
        """Get an abstractor instance based on the specified type.

        Args:
            abstractor_type: The abstractor type to instantiate. If None, uses settings.

        Returns:
            A BaseTemplateAbstractor implementation instance.

        Raises:
            ValueError: If the abstractor type is unknown.
        """
        if self._abstractor_cache is None or abstractor_type is not None:
            abstractor_type = abstractor_type or self._settings.abstractor_type

            logger.info(f"Instantiating abstractor: {abstractor_type}")

            match abstractor_type:
                case "strict":
                    self._abstractor_cache = TemplateAbstractor(
                        max_depth=self._settings.max_tree_depth,
                    )
                case _:
                    raise ValueError(
                        f"Unknown abstractor type: {abstractor_type}. "
                        f"Valid options: 'strict'"
                    )

        return self._abstractor_cache

    def get_resolver(self, resolver_type: str | None = None) -> BaseTemplateResolver:
        """Get a resolver instance based on the specified type.

        Args:
            resolver_type: The resolver type to instantiate. If None, uses settings.

        Returns:
            A BaseTemplateResolver implementation instance.

        Raises:
            ValueError: If the resolver type is unknown.
        """
        if self._resolver_cache is None or resolver_type is not None:
            resolver_type = resolver_type or self._settings.resolver_type

            logger.info(f"Instantiating resolver: {resolver_type}")

            match resolver_type:
                case "strict":
                    self._resolver_cache = TemplateResolver(
                        max_depth=self._settings.max_tree_depth,
                    )
                case _:
                    raise ValueError(
                        f"Unknown resolver type: {resolver_type}. "
                        f"Valid options: 'strict'"
                    )

        return self._resolver_cache


_factory: ComponentFactory | None = None


def get_factory() -> ComponentFactory:
    """Get or create the global ComponentFactory."""
    global _factory
    if _factory is None:
        _factory = ComponentFactory()
    return _factory
