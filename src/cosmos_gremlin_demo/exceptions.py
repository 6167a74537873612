"""Exceptions raised by the Cosmos DB Gremlin demo."""

from typing import Any


class GraphDemoError(Exception):
    """Base exception for all demo errors."""

    pass


class ConfigurationMissing(GraphDemoError):
    """The settings file or a required setting could not be found."""

    pass


class InvalidConfiguration(GraphDemoError):
    """A setting is present but cannot be used."""

    pass


class ConnectionFailure(GraphDemoError):
    """The remote service could not be reached."""

    pass


class ProvisioningError(GraphDemoError):
    """Creating or reading a database or graph container failed."""

    pass


class QueryExecutionError(GraphDemoError):
    """A Gremlin query was rejected or failed while its results were read."""

    def __init__(self, query: str, message: str) -> None:
        self.query = query
        super().__init__(f"{message} (query: {query[:100]})")


class PropertyNotFound(GraphDemoError):
    """A graph element has no value for the requested property."""

    def __init__(self, element_id: Any, property_name: str) -> None:
        self.element_id = element_id
        self.property_name = property_name
        super().__init__(
            f"Element '{element_id}' has no property '{property_name}'"
        )


class TypeMismatch(GraphDemoError):
    """A property value does not have the expected type."""

    def __init__(
        self,
        element_id: Any,
        property_name: str,
        expected_type: type,
        actual_value: Any,
    ) -> None:
        self.element_id = element_id
        self.property_name = property_name
        self.expected_type = expected_type
        self.actual_value = actual_value
        super().__init__(
            f"Property '{property_name}' of element '{element_id}' is "
            f"{type(actual_value).__name__}, expected {expected_type.__name__}"
        )


class StageExecutionError(GraphDemoError):
    """Error raised when a stage of the demo fails."""

    def __init__(self, stage_name: str, original_error: Exception) -> None:
        self.stage_name = stage_name
        self.original_error = original_error
        message = f"Stage '{stage_name}' failed: {original_error}"
        super().__init__(message)
