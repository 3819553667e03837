"""Template expression evaluation for notifications and event content.

Values are walked recursively and every string carrying Jinja2 markers is
resolved against a context. The result keeps the shape of the input:

- dict -> dict with the same keys, evaluated values
- list / tuple -> same container type, element-wise
- objects with ``to_dict()`` (execution and notification DTOs) -> evaluated dict
- ``"{{ expr }}"`` on its own -> the native value of ``expr`` (lists stay lists)
- any other templated string -> rendered string
- everything else -> returned as-is

Expressions run in a Jinja2 sandbox with ``StrictUndefined`` so that
references to unknown names are detected instead of rendering as "".
An expression that cannot be evaluated for any reason (unknown name, bad
syntax, or an error raised while computing it) is left as written when
unresolved expressions are allowed.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Dict

import jinja2
from jinja2.sandbox import SandboxedEnvironment

from apps.notify.exceptions import ExpressionEvaluationError

if TYPE_CHECKING:
    from apps.orchestration.dtos import Execution

logger = logging.getLogger(__name__)

_TEMPLATE_MARKERS = ("{{", "{%")

# A string that is a single "{{ ... }}" expression and nothing else
_SINGLE_EXPRESSION = re.compile(r"^\s*\{\{(?P<expr>(?:(?!\}\}).)*)\}\}\s*$", re.DOTALL)


class ExpressionEvaluator:
    """Resolves embedded template expressions against a context."""

    def __init__(self, environment: jinja2.Environment | None = None):
        self.environment = environment or SandboxedEnvironment(
            undefined=jinja2.StrictUndefined,
            autoescape=False,
        )

    def evaluate(self, value: Any, context: Dict[str, Any], allow_unresolved: bool = True) -> Any:
        """Evaluate every expression inside ``value``.

        Args:
            value: Any JSON-like structure, possibly containing DTOs.
            context: Names available to expressions.
            allow_unresolved: Leave strings whose expressions cannot be
                resolved untouched instead of raising.

        Returns:
            A value with the same structure as ``value``.

        Raises:
            ExpressionEvaluationError: if an expression cannot be resolved and
                ``allow_unresolved`` is false.
        """
        if hasattr(value, "to_dict") and callable(value.to_dict):
            value = value.to_dict()

        if isinstance(value, dict):
            return {k: self.evaluate(v, context, allow_unresolved) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.evaluate(v, context, allow_unresolved) for v in value)
        if isinstance(value, str):
            return self._evaluate_string(value, context, allow_unresolved)
        return value

    def _evaluate_string(self, value: str, context: Dict[str, Any], allow_unresolved: bool) -> Any:
        if not any(marker in value for marker in _TEMPLATE_MARKERS):
            return value

        try:
            match = _SINGLE_EXPRESSION.match(value)
            if match:
                expression = self.environment.compile_expression(
                    match.group("expr").strip(), undefined_to_none=False
                )
                result = expression(**context)
                if isinstance(result, jinja2.Undefined):
                    # Force StrictUndefined to raise for the unknown name
                    str(result)
                return result

            return self.environment.from_string(value).render(**context)
        except Exception as e:
            if allow_unresolved:
                logger.debug("Leaving unresolved expression %r: %s", value, e)
                return value
            raise ExpressionEvaluationError(value, str(e)) from e


def build_execution_context(execution: "Execution") -> Dict[str, Any]:
    """Context for evaluating an execution's notifications.

    Top-level keys mirror the execution's own fields, so both
    ``{{ name }}`` and ``{{ execution.name }}`` resolve.
    """
    execution_dict = execution.to_dict()
    context = dict(execution_dict)
    context["execution"] = execution_dict
    context["trigger"] = execution_dict.get("trigger") or {}
    return context
