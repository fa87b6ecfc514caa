"""
Node Handlers for Workflow Engine.

Every node type has one handler, registered with the @handler decorator.
A handler receives the node and the NodeContext of the current run and
returns a NodeOutcome. Failures are raised as NodeExecutionError; the
executor turns them into a failed step and moves on.
"""

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum
import logging
import operator as op

from app.engine.errors import ConditionError, IntegrationError, NodeConfigError, NodeExecutionError
from app.engine.graph import Node, NodeType
from app.engine.lookup import MISSING, find_value, is_number
from app.engine.metadata import EmailConfig, FormConfig, IntegrationConfig
from app.engine.state import ConditionOperator, ConditionSpec, WellKnownVars
from app.engine.templating import render_text, render_url

if TYPE_CHECKING:
    from app.integrations.http import IntegrationClient
    from app.integrations.mailer import SimulatedMailer


logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    """Status of a single execution step."""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class NodeContext:
    """
    Everything a handler may read or change during one run.

    Attributes:
        variables: Shared variable context, mutated in place
        condition: Condition from the input bundle, if any
        client: HTTP client for integration nodes
        mailer: Mailer for email nodes
        lookup_max_depth: How deep integration responses are searched
    """
    variables: Dict[str, Any] = field(default_factory=dict)
    condition: Optional[ConditionSpec] = None
    client: Optional["IntegrationClient"] = None
    mailer: Optional["SimulatedMailer"] = None
    lookup_max_depth: int = 2


@dataclass
class NodeOutcome:
    """What a handler produced for its step."""
    output: Dict[str, Any] = field(default_factory=dict)
    status: StepStatus = StepStatus.COMPLETED
    description: Optional[str] = None  # Rendered description, if changed


HandlerFunc = Callable[[Node, NodeContext], Awaitable[NodeOutcome]]


@dataclass
class NodeHandler:
    """A registered handler and the message shown when it fails."""
    node_type: NodeType
    func: HandlerFunc
    failure_message: str


# Registry of handlers keyed by node type value
_handler_registry: Dict[str, NodeHandler] = {}


def handler(node_type: NodeType, failure_message: str = "Failed to process node") -> Callable:
    """
    Decorator to register the handler of a node type.

    Usage:
        @handler(NodeType.END)
        async def run_end(node, ctx):
            return NodeOutcome({"message": "done"})
    """
    def decorator(func: HandlerFunc) -> HandlerFunc:
        _handler_registry[node_type.value] = NodeHandler(
            node_type=node_type,
            func=func,
            failure_message=failure_message,
        )
        return func

    return decorator


def get_handler(node_type: str) -> Optional[NodeHandler]:
    """Get the handler for a node type, or None for unknown types."""
    return _handler_registry.get(node_type)


def list_handlers() -> List[str]:
    return list(_handler_registry.keys())


# ============================================================
# Start / End
# ============================================================

@handler(NodeType.START)
async def run_start(node: Node, ctx: NodeContext) -> NodeOutcome:
    return NodeOutcome({"message": "Workflow started successfully"})


@handler(NodeType.END)
async def run_end(node: Node, ctx: NodeContext) -> NodeOutcome:
    return NodeOutcome({"message": "Workflow completed successfully"})


# ============================================================
# Form
# ============================================================

@handler(NodeType.FORM, failure_message="Failed to process form data")
async def run_form(node: Node, ctx: NodeContext) -> NodeOutcome:
    """
    Expose form values to the rest of the workflow.

    Without `outputVariables` the whole variable context is copied. With it,
    only the listed names are copied and missing ones are set to None.
    """
    config = FormConfig.from_metadata(node.metadata)
    variables = ctx.variables

    if config.output_variables is None:
        output = dict(variables)
    else:
        output = {}
        for name in config.output_variables:
            if name not in variables:
                logger.debug(f"Form variable '{name}' not found in variables")
            output[name] = variables.get(name)

    for name in config.input_fields:
        if name not in variables:
            logger.warning(f"Expected input field '{name}' not found in variables")

    return NodeOutcome(output)


# ============================================================
# Integration
# ============================================================

def select_option(options: List[Dict[str, Any]], values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the first option whose fields equal every input value."""
    for option in options:
        if all(key in option and option[key] == value for key, value in values.items()):
            return option
    return None


@handler(NodeType.INTEGRATION, failure_message="Failed to process integration")
async def run_integration(node: Node, ctx: NodeContext) -> NodeOutcome:
    """
    Call an external JSON API chosen by the node's options.

    Metadata:
        inputVariables: Variables that must exist and select the option
        options: Candidate parameter sets, matched on the input variables
        apiEndpoint: URL template with {key} placeholders
        outputVariables: Fields to pull out of the response
    """
    metadata = node.metadata
    input_variables = IntegrationConfig.read_input_variables(metadata)

    input_values = {}
    for name in input_variables:
        if name not in ctx.variables:
            raise NodeExecutionError(f"required input variable '{name}' not found in variables")
        input_values[name] = ctx.variables[name]

    option = select_option(IntegrationConfig.read_options(metadata), input_values)
    if option is None:
        raise NodeExecutionError("no matching option found for input values")

    api_endpoint = IntegrationConfig.read_api_endpoint(metadata)
    output_variables = IntegrationConfig.read_output_variables(metadata)

    if ctx.client is None:
        raise IntegrationError("no HTTP client configured")

    url = render_url(api_endpoint, option)
    logger.info(f"Integration node '{node.id}' calling {url}")
    response = await ctx.client.get_json(url)

    output: Dict[str, Any] = {}
    for name in output_variables:
        value = find_value(response, name, ctx.lookup_max_depth)
        if value is not MISSING:
            output[name] = value
        elif name in input_values:
            output[name] = input_values[name]
        else:
            logger.debug(f"Output variable '{name}' not found in response")

    temperature = output.get(WellKnownVars.TEMPERATURE)
    city = input_values.get(WellKnownVars.CITY)
    if is_number(temperature) and isinstance(city, str):
        output["message"] = f"Weather data fetched for {city}: {temperature:.1f}°C"
    else:
        output["message"] = "Integration call completed successfully"

    ctx.variables.update(output)

    description = None
    if node.description:
        description = render_text(node.description, ctx.variables)

    return NodeOutcome(output, description=description)


# ============================================================
# Condition
# ============================================================

_COMPARISONS = {
    ConditionOperator.GREATER_THAN.value: op.gt,
    ConditionOperator.LESS_THAN.value: op.lt,
    ConditionOperator.EQUALS.value: op.eq,
    ConditionOperator.GREATER_THAN_OR_EQUAL.value: op.ge,
    ConditionOperator.LESS_THAN_OR_EQUAL.value: op.le,
}


def evaluate_condition(value: float, operator: str, threshold: float) -> bool:
    """Compare value against threshold; unknown operators act as greater_than."""
    compare = _COMPARISONS.get(operator)
    if compare is None:
        logger.warning(f"Unknown operator '{operator}', defaulting to greater_than")
        compare = op.gt
    return compare(value, threshold)


@handler(NodeType.CONDITION, failure_message="Failed to evaluate condition")
async def run_condition(node: Node, ctx: NodeContext) -> NodeOutcome:
    """Evaluate `temperature <operator> threshold` and publish conditionMet."""
    condition = ctx.condition
    if condition is None:
        raise ConditionError("condition configuration is missing")

    temperature = ctx.variables.get(WellKnownVars.TEMPERATURE)
    if not is_number(temperature):
        raise ConditionError("temperature not found in variables or invalid type")

    met = evaluate_condition(temperature, condition.operator, condition.threshold)
    output = {
        WellKnownVars.CONDITION_MET: met,
        "threshold": condition.threshold,
        "operator": condition.operator,
        "actualValue": temperature,
        "message": (
            f"Temperature {temperature:.1f}°C is {condition.operator} "
            f"{condition.threshold:.1f}°C - condition {'met' if met else 'not met'}"
        ),
    }
    ctx.variables.update(output)
    return NodeOutcome(output)


# ============================================================
# Email
# ============================================================

@handler(NodeType.EMAIL, failure_message="Failed to process email")
async def run_email(node: Node, ctx: NodeContext) -> NodeOutcome:
    """
    Render the email template and hand it to the mailer.

    Skipped, without rendering anything, when an earlier condition node set
    conditionMet to False.
    """
    if node.metadata is None:
        raise NodeConfigError("email node missing metadata")

    if ctx.variables.get(WellKnownVars.CONDITION_MET, MISSING) is False:
        return NodeOutcome(
            {"message": "Email alert skipped - condition not met"},
            status=StepStatus.SKIPPED,
        )

    config = EmailConfig.from_metadata(node.metadata)
    if ctx.mailer is None:
        raise NodeExecutionError("no mailer configured")

    input_values = {}
    for name in config.input_variables:
        if name in ctx.variables:
            input_values[name] = ctx.variables[name]
        else:
            logger.debug(f"Email input variable '{name}' not found in variables")

    recipient = ctx.variables.get(WellKnownVars.EMAIL)
    message = ctx.mailer.compose(
        to=recipient if isinstance(recipient, str) else "",
        subject=render_text(config.subject, ctx.variables),
        body=render_text(config.body, ctx.variables),
    )
    receipt = ctx.mailer.send(message)

    output: Dict[str, Any] = {
        "emailDraft": message.to_dict(),
        "deliveryStatus": receipt.status,
        "messageId": receipt.message_id,
        "emailSent": receipt.sent,
        "message": "Email alert sent",
    }
    for name in config.output_variables:
        if name not in output and name in input_values:
            output[name] = input_values[name]

    return NodeOutcome(output)
