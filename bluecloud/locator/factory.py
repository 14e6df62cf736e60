"""Factory for creating spatial locators."""

from typing import Any, Dict, Type

from bluecloud.locator.base import Locator
from bluecloud.locator.bruteforce import BruteForceLocator
from bluecloud.locator.hashgrid import HashGridLocator


class LocatorFactory:
    """Factory for creating locator strategies."""

    _strategies: Dict[str, Type[Locator]] = {
        "bruteforce": BruteForceLocator,
        "hashgrid": HashGridLocator,
    }

    @classmethod
    def create(cls, strategy: str = "hashgrid", **kwargs: Any) -> Locator:
        """Create an empty locator.

        Args:
            strategy: Strategy name
            **kwargs: Additional arguments for the strategy

        Returns:
            Locator instance

        Raises:
            ValueError: If strategy is unknown
        """
        if strategy not in cls._strategies:
            available = ", ".join(cls._strategies.keys())
            raise ValueError(
                f"Unknown locator strategy: {strategy}. Available: {available}"
            )

        return cls._strategies[strategy](**kwargs)

    @classmethod
    def create_for_radius(
        cls,
        strategy: str,
        radius: float,
        **kwargs: Any,
    ) -> Locator:
        """Create a locator tuned for queries of a given radius.

        Grid strategies without an explicit ``cell_size`` use the radius as
        cell size, so a query ball spans two to three cells per axis.

        Args:
            strategy: Strategy name
            radius: Typical query radius
            **kwargs: Additional arguments for the strategy

        Returns:
            Locator instance
        """
        kwargs = {key: value for key, value in kwargs.items() if value is not None}
        locator_class = cls._strategies.get(strategy)
        if locator_class is not None and issubclass(locator_class, HashGridLocator):
            kwargs.setdefault("cell_size", radius)
        else:
            kwargs.pop("cell_size", None)
        return cls.create(strategy, **kwargs)

    @classmethod
    def register(cls, name: str, locator_class: Type[Locator]) -> None:
        """Register a new locator strategy.

        Args:
            name: Name for the strategy
            locator_class: Locator class
        """
        cls._strategies[name] = locator_class

    @classmethod
    def available_strategies(cls) -> list[str]:
        """Get list of available locator strategies.

        Returns:
            List of strategy names
        """
        return list(cls._strategies.keys())
