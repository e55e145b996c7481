import json

import pytest
from http_jobtype.errors import EvaluationError
from http_jobtype.evaluator import evaluate, matches, verdict
from loguru import logger

PERSON = json.dumps(
    {
        "firstName": "John",
        "age": 26,
        "active": False,
        "nickname": None,
        "tags": [],
        "address": {"city": "Nara"},
        "phoneNumbers": [
            {"type": "iPhone", "number": "0123-4567-8888"},
            {"type": "home", "number": "0123-4567-8910"},
        ],
    }
)


@pytest.fixture
def warnings():
    messages = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(handler_id)


def test_root_filter_tests_the_object_itself():
    assert matches('{"code":1}', "$[?(@.code==1)]")
    assert not matches('{"code":2}', "$[?(@.code==1)]")


def test_root_filter_on_array():
    body = '[{"code":2},{"code":1}]'
    assert matches(body, "$[?(@.code==1)]")
    assert not matches(body, "$[?(@.code==3)]")


def test_filter_followed_by_field():
    assert matches(PERSON, "$[?(@.age>0)].firstName")
    assert not matches(PERSON, "$[?(@.age>0)].test")


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("$.firstName", True),
        ("$.address", True),
        ("$.active", True),
        ("$.nickname", False),
        ("$.tags", False),
        ("$.missing", False),
        ("$.phoneNumbers[*].type", True),
        ("$.phoneNumbers[?(@.type=='home')]", True),
        ("$.phoneNumbers[?(@.type=='work')]", False),
    ],
)
def test_single_expression(expression, expected):
    assert matches(PERSON, expression) is expected


@pytest.mark.parametrize("expressions", ["$.missing,$.firstName", "$.firstName,$.missing"])
def test_any_expression_matches(expressions):
    assert matches(PERSON, expressions)


def test_no_expression_matches():
    assert not matches(PERSON, "$.missing,$.tags,$.nickname")


def test_blank_entries_are_skipped():
    assert matches(PERSON, " ,$.firstName, ")
    assert not matches(PERSON, ",,")


def test_trailing_comma():
    assert matches('{"code":1}', "$[?(@.code==1)],")


def test_malformed_expression_is_a_warning(warnings):
    assert not matches(PERSON, "$[?(@.age>")
    assert len(warnings) == 1
    assert "JSONPath eval error" in warnings[0]


def test_malformed_entry_does_not_hide_other_matches(warnings):
    assert matches(PERSON, "$[?(@.age>,$.firstName")


def test_body_that_is_not_json(warnings):
    assert not matches("<html>busy</html>", "$.code")
    assert warnings


def test_evaluate_returns_error_value():
    result = evaluate("{}", "$[")
    assert result.values == []
    assert isinstance(result.error, EvaluationError)
    assert result.error.expression == "$["


def test_evaluate_without_body():
    result = evaluate(None, "$.code")
    assert result.error is None
    assert result.values == []


def test_verdict_without_expressions_is_success():
    assert verdict(None, "", "")
    assert verdict("anything", "", "")


def test_verdict_combines_success_and_fail():
    body = '{"code":1,"error":null}'
    assert verdict(body, "$[?(@.code==1)]", "$.error")
    assert not verdict(body, "$[?(@.code==2)]", "")
    assert not verdict(body, "$[?(@.code==1)]", "$.code")
    assert not verdict(body, "", "$[?(@.code==1)]")


@pytest.mark.parametrize(
    "expression, body, expected",
    [
        ("$.arr[*]", '{"arr": [null]}', True),
        ("$.arr[*]", '{"arr": [[]]}', True),
        ("$.arr[*]", '{"arr": []}', False),
        ("$.arr[0]", '{"arr": [null]}', False),
        ("$.arr[0]", '{"arr": [[]]}', False),
        ("$.arr[?(@.id==1)]", '{"arr": [{"id": 1}]}', True),
    ],
)
def test_multi_valued_paths_match_when_non_empty(expression, body, expected):
    assert matches(body, expression) is expected
