"""Portals Variable Map: last-seen values of host game variables."""

from typing import Any

from ..exceptions import InvalidArgumentError
from ..logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

VariableValue = int | float | str


class PortalsVariableMap:
    """
    Mirror of named host variables, last write wins.

    Values are scalars only. The map is not persisted and never touches the
    item store.
    """

    def __init__(self) -> None:
        self._values: dict[str, VariableValue] = {}

    def set(self, name: Any, value: Any) -> VariableValue:
        """
        Record the latest value of a host variable.

        Raises:
            InvalidArgumentError: If the name is blank or the value is not an int, float or str.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("Variable name must be a non-empty string", argument="name", value=name)
        if isinstance(value, bool) or not isinstance(value, int | float | str):
            raise InvalidArgumentError(
                f"Variable {name} must be a number or string, got {type(value).__name__}",
                argument="value",
                value=value,
            )

        previous = self._values.get(name)
        self._values[name] = value
        logger.debug("Synced host variable", name=name, value=value, previous=previous)
        return value

    def get(self, name: str) -> VariableValue | None:
        return self._values.get(name)

    def snapshot(self) -> dict[str, VariableValue]:
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)
