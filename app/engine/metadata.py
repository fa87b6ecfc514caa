"""
Typed node configuration.

Node metadata arrives as a free-form JSON bag. Each node kind that needs
configuration gets a small dataclass that reads the bag once and reports
shape problems as NodeConfigError. Handlers use these at execution time and
Graph.validate() uses them to surface problems when a graph is loaded.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from app.engine.errors import NodeConfigError


def _string_list(value: List[Any]) -> List[str]:
    # Non-string entries are ignored
    return [item for item in value if isinstance(item, str)]


def _optional_string_list(metadata: Dict[str, Any], key: str) -> List[str]:
    value = metadata.get(key)
    if isinstance(value, list):
        return _string_list(value)
    return []


@dataclass(frozen=True)
class FormConfig:
    """Configuration of a form node."""

    # None means "copy every variable"
    output_variables: Optional[List[str]] = None
    input_fields: List[str] = field(default_factory=list)

    @classmethod
    def from_metadata(cls, metadata: Optional[Dict[str, Any]]) -> "FormConfig":
        if not metadata:
            return cls()

        input_fields = _optional_string_list(metadata, "inputFields")
        if "outputVariables" not in metadata:
            return cls(input_fields=input_fields)

        output_variables = metadata["outputVariables"]
        if not isinstance(output_variables, list):
            raise NodeConfigError("outputVariables must be an array")
        return cls(output_variables=_string_list(output_variables), input_fields=input_fields)


@dataclass(frozen=True)
class IntegrationConfig:
    """Configuration of an integration node."""

    input_variables: List[str]
    options: List[Dict[str, Any]]
    api_endpoint: str
    output_variables: List[str] = field(default_factory=list)

    @staticmethod
    def read_input_variables(metadata: Optional[Dict[str, Any]]) -> List[str]:
        if metadata is None:
            raise NodeConfigError("integration node missing metadata")
        if "inputVariables" not in metadata:
            raise NodeConfigError("integration node missing inputVariables in metadata")
        input_variables = metadata["inputVariables"]
        if not isinstance(input_variables, list):
            raise NodeConfigError("inputVariables must be an array")
        return _string_list(input_variables)

    @staticmethod
    def read_options(metadata: Dict[str, Any]) -> List[Dict[str, Any]]:
        if "options" not in metadata:
            raise NodeConfigError("integration node missing options in metadata")
        options = metadata["options"]
        if not isinstance(options, list):
            raise NodeConfigError("options must be an array")
        return [option for option in options if isinstance(option, dict)]

    @staticmethod
    def read_api_endpoint(metadata: Dict[str, Any]) -> str:
        if "apiEndpoint" not in metadata:
            raise NodeConfigError("integration node missing apiEndpoint in metadata")
        api_endpoint = metadata["apiEndpoint"]
        if not isinstance(api_endpoint, str):
            raise NodeConfigError("apiEndpoint must be a string")
        return api_endpoint

    @staticmethod
    def read_output_variables(metadata: Dict[str, Any]) -> List[str]:
        return _optional_string_list(metadata, "outputVariables")

    @classmethod
    def from_metadata(cls, metadata: Optional[Dict[str, Any]]) -> "IntegrationConfig":
        """
        Parse the whole bag at once, for validation.

        The integration handler uses the read_* steps directly, since the
        input variables and option match are checked before apiEndpoint.
        """
        input_variables = cls.read_input_variables(metadata)
        return cls(
            input_variables=input_variables,
            options=cls.read_options(metadata),
            api_endpoint=cls.read_api_endpoint(metadata),
            output_variables=cls.read_output_variables(metadata),
        )


@dataclass(frozen=True)
class EmailConfig:
    """Configuration of an email node."""

    subject: str
    body: str
    input_variables: List[str] = field(default_factory=list)
    output_variables: List[str] = field(default_factory=list)

    @classmethod
    def from_metadata(cls, metadata: Optional[Dict[str, Any]]) -> "EmailConfig":
        if metadata is None:
            raise NodeConfigError("email node missing metadata")

        if "emailTemplate" not in metadata:
            raise NodeConfigError("email node missing emailTemplate in metadata")
        template = metadata["emailTemplate"]
        if not isinstance(template, dict):
            raise NodeConfigError("emailTemplate must be an object")

        subject = template.get("subject")
        body = template.get("body")
        return cls(
            subject=subject if isinstance(subject, str) else "",
            body=body if isinstance(body, str) else "",
            input_variables=_optional_string_list(metadata, "inputVariables"),
            output_variables=_optional_string_list(metadata, "outputVariables"),
        )


_CONFIG_TYPES = {
    "form": FormConfig,
    "integration": IntegrationConfig,
    "email": EmailConfig,
}


def parse_node_config(node_type: str, metadata: Optional[Dict[str, Any]]) -> Any:
    """
    Parse the metadata bag for a node kind.

    Returns:
        The typed config, or None for kinds without configuration

    Raises:
        NodeConfigError: If the metadata has the wrong shape
    """
    config_type = _CONFIG_TYPES.get(node_type)
    if config_type is None:
        return None
    return config_type.from_metadata(metadata)
