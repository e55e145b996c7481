import json
from typing import Any, List, Optional

from jsonpath_ng.ext import parse
from jsonpath_ng.ext.filter import Filter
from jsonpath_ng.jsonpath import Child, Fields, Index, Root, This
from loguru import logger
from pydantic import BaseModel, ConfigDict

from http_jobtype.errors import EvaluationError

EXPRESSION_DELIMITER = ","


class EvalResult(BaseModel):
    """Values found by one JSONPath expression, or the error that stopped it"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    values: List[Any] = []
    singular: bool = True
    error: Optional[EvaluationError] = None


def _filters_root(path) -> bool:
    """Whether the first step after `$` is a filter"""
    while isinstance(path, Child) and isinstance(path.left, Child):
        path = path.left
    return (
        isinstance(path, Child)
        and isinstance(path.left, Root)
        and isinstance(path.right, Filter)
    )


def _is_singular(path) -> bool:
    """Whether the path selects at most one value; wildcards, slices and filters do not"""
    if isinstance(path, Child):
        return _is_singular(path.left) and _is_singular(path.right)
    if isinstance(path, Fields):
        return len(path.fields) == 1 and path.fields[0] != "*"
    if isinstance(path, Index):
        return len(getattr(path, "indices", (None,))) == 1
    return isinstance(path, (Root, This))


def evaluate(body: Optional[str], expression: str) -> EvalResult:
    expression = expression.strip()
    try:
        path = parse(expression)
        if body is None:
            return EvalResult()
        document = json.loads(body)
        # A filter on the root object tests the object itself
        if isinstance(document, dict) and _filters_root(path):
            document = [document]
        return EvalResult(
            values=[match.value for match in path.find(document)],
            singular=_is_singular(path),
        )
    except Exception as e:
        return EvalResult(error=EvaluationError(expression, str(e)))


def _is_match(result: EvalResult) -> bool:
    if result.error is not None:
        logger.warning(str(result.error))
        return False
    if not result.values:
        return False
    # A multi-valued path yields a list, which matches when non-empty
    if not result.singular or len(result.values) > 1:
        return True
    value = result.values[0]
    if value is None:
        return False
    if isinstance(value, (list, dict)):
        return len(value) > 0
    return True


def matches(body: Optional[str], expressions: str) -> bool:
    """True if any of the comma separated expressions matches the body"""
    evals = expressions.split(EXPRESSION_DELIMITER)
    if len(evals) == 1:
        return _is_match(evaluate(body, evals[0]))
    return any(_is_match(evaluate(body, e)) for e in evals if e.strip())


def verdict(body: Optional[str], success_eval: str, fail_eval: str) -> bool:
    logger.info(f"HTTP validate successEval:{success_eval}, failEval:{fail_eval}")
    success = not fail_eval or not matches(body, fail_eval)
    return success and (not success_eval or matches(body, success_eval))
