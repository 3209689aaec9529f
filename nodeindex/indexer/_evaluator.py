from __future__ import annotations

import re
from functools import lru_cache
from threading import Lock
from typing import Any

from jinja2 import StrictUndefined, TemplateError, Undefined
from jinja2.sandbox import SandboxedEnvironment

from nodeindex.core import Loader
from nodeindex.core.exceptions import ConfigurationError, LoadError

from ._models import Node

EXPRESSION_RECOGNIZER = re.compile(r"^\$\{(?P<exp>.*)\}$", re.DOTALL)


class ExpressionEvaluator:
    """Evaluates "${...}" indexing expressions.

    The expression body is compiled as a sandboxed Jinja expression.
    Default context variables are instantiated once, on first use,
    and shared read-only by all later evaluations.
    """

    default_context: dict[str, str]

    _environment: SandboxedEnvironment
    _default_variables: dict[str, Any] | None
    _lock: Lock

    def __init__(self, default_context: dict[str, str] | None = None):
        self.default_context = default_context or dict()
        self._environment = SandboxedEnvironment(undefined=StrictUndefined)
        self._default_variables = None
        self._lock = Lock()
        self._compile = lru_cache(maxsize=1024)(self._compile_expression)

    def evaluate(self, expression: str, variables: dict[str, Any]) -> Any:
        """Evaluate a wrapped expression with the given variables.

        Args:
            expression:
                Expression of the form "${...}".
            variables:
                Variables bound on top of the default context.

        Returns:
            Evaluated value.
        """
        match = EXPRESSION_RECOGNIZER.match(expression.strip())
        if match is None:
            raise ConfigurationError(
                f'"{expression}" is not a valid expression. '
                "Perhaps you forgot to wrap it in ${...}?"
            )
        compiled = self._compile(match.group("exp"))
        try:
            result = compiled(**{**self.get_default_variables(), **variables})
        except TemplateError as e:
            raise ConfigurationError(
                f'Expression "{expression}" could not be evaluated: {e}'
            ) from e
        if isinstance(result, Undefined):
            raise ConfigurationError(
                f'Expression "{expression}" evaluated to an undefined value'
            )
        return result

    def evaluate_property(
        self,
        expression: str,
        node: Node,
        property_name: str,
        value: Any,
        document_id: str,
    ) -> Any:
        try:
            return self.evaluate(
                expression,
                {
                    "node": node,
                    "propertyName": property_name,
                    "value": value,
                    "documentId": document_id,
                },
            )
        except ConfigurationError as e:
            raise ConfigurationError(
                f'Indexing property "{property_name}" of '
                f'"{node.node_type.name}" failed. {e}'
            ) from e

    def get_default_variables(self) -> dict[str, Any]:
        if self._default_variables is not None:
            return self._default_variables
        with self._lock:
            if self._default_variables is None:
                self._default_variables = self._build_default_variables()
        return self._default_variables

    def _build_default_variables(self) -> dict[str, Any]:
        variables: dict[str, Any] = {}
        for variable_name, class_path in self.default_context.items():
            *parents, leaf = variable_name.split(".")
            current = variables
            for name in parents:
                current = current.setdefault(name, {})
            try:
                current[leaf] = Loader.load_class(class_path)()
            except LoadError as e:
                raise ConfigurationError(
                    f'Default context variable "{variable_name}" '
                    f'could not be loaded from "{class_path}"'
                ) from e
        return variables

    def _compile_expression(self, source: str) -> Any:
        try:
            return self._environment.compile_expression(
                source, undefined_to_none=False
            )
        except TemplateError as e:
            raise ConfigurationError(
                f'Expression "${{{source}}}" is not valid: {e}'
            ) from e
