"""
Unit tests for the condition expression language.
"""

import pytest

from service_features.app.rules.errors import ExpressionEvaluationError, ExpressionSyntaxError
from service_features.app.rules.expression import (
    And, Compare, Literal, Name, Not, Or,
    evaluate_expression, parse_expression, tokenize
)
from service_features.app.rules.models import EvaluationContext


def run(text, **variables):
    return evaluate_expression(parse_expression(text), variables)


class TestTokenizer:
    """Test cases for tokenize."""

    def test_tokenize_comparison(self):
        """Test tokens of a simple comparison."""
        tokens = tokenize("Age >= 18")

        assert [(t.kind, t.value) for t in tokens] == [
            ("ident", "Age"), ("op", ">="), ("number", "18"), ("end", "")
        ]

    def test_keywords_are_case_insensitive(self):
        """Test keyword normalization."""
        tokens = tokenize("TRUE And NOT null")

        assert [(t.kind, t.value) for t in tokens[:-1]] == [
            ("keyword", "true"), ("keyword", "and"), ("keyword", "not"), ("keyword", "null")
        ]

    def test_unexpected_character(self):
        """Test tokenizer rejects unknown characters."""
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            tokenize("Age # 1")

        assert exc_info.value.position == 4

    def test_unterminated_string(self):
        """Test an unterminated string literal is rejected."""
        with pytest.raises(ExpressionSyntaxError):
            tokenize('Name == "Ann')


class TestParser:
    """Test cases for parse_expression."""

    def test_parse_comparison(self):
        """Test comparison AST."""
        assert parse_expression("Age >= 18") == Compare(">=", Name(("Age",)), Literal(18))

    def test_and_binds_tighter_than_or(self):
        """Test operator precedence."""
        node = parse_expression("a || b && c")

        assert node == Or(Name(("a",)), And(Name(("b",)), Name(("c",))))

    def test_parentheses_override_precedence(self):
        """Test grouping."""
        node = parse_expression("(a or b) and not c")

        assert node == And(Or(Name(("a",)), Name(("b",))), Not(Name(("c",))))

    def test_equality_aliases(self):
        """Test '=' and '<>' map to '==' and '!='."""
        assert parse_expression("a = 1").op == "=="
        assert parse_expression("a <> 1").op == "!="

    def test_decimal_and_string_literals(self):
        """Test literal decoding."""
        assert parse_expression("Score > 2.5").right == Literal(2.5)
        assert parse_expression('Name == "a\\"b"').right == Literal('a"b')

    def test_member_access(self):
        """Test dotted names."""
        node = parse_expression('user.address.country == "DE"')

        assert node.left == Name(("user", "address", "country"))

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "Age >=",
        "(Age > 1",
        "Age > 1 )",
        "Age > > 1",
        "user. == 1",
        "Age 18",
    ])
    def test_syntax_errors(self, text):
        """Test malformed expressions are rejected."""
        with pytest.raises(ExpressionSyntaxError):
            parse_expression(text)


class TestEvaluator:
    """Test cases for evaluate_expression."""

    def test_numeric_comparisons(self):
        """Test ordering operators on numbers."""
        assert run("Age >= 18", Age=20) is True
        assert run("Age >= 18", Age=10) is False
        assert run("Age < 18.5", Age=18) is True

    def test_string_equality_and_ordering(self):
        """Test string comparisons."""
        assert run('Country == "DE"', Country="DE") is True
        assert run('Country != "DE"', Country="FR") is True
        assert run('Tier > "a"', Tier="b") is True

    def test_boolean_literals_and_logic(self):
        """Test logical operators."""
        assert run("true") is True
        assert run("TRUE and not False") is True
        assert run("Beta && Age > 1", Beta=True, Age=2) is True
        assert run("!Beta || false", Beta=True) is False

    def test_logical_operators_short_circuit(self):
        """Test the right operand is not evaluated when the left decides."""
        assert run("false && Missing == 1") is False
        assert run("true || Missing == 1") is True

    def test_null_equality(self):
        """Test null compares with any type."""
        assert run("Email == null", Email=None) is True
        assert run("Email != null", Email="a@b.c") is True

    def test_unary_minus(self):
        """Test negative numbers."""
        assert run("Balance > -5", Balance=0) is True

    def test_nested_mapping_and_provider(self):
        """Test member access into nested values."""
        assert run('user.country == "DE"', user={"country": "DE"}) is True
        assert run("account.premium", account=EvaluationContext(premium=True)) is True

    def test_unknown_attribute(self):
        """Test unknown names fail."""
        with pytest.raises(ExpressionEvaluationError, match="No attribute 'Missing'"):
            run("Missing == 1", Age=3)

    def test_unknown_member(self):
        """Test unknown members fail."""
        with pytest.raises(ExpressionEvaluationError, match="No member 'city'"):
            run('user.city == "x"', user={"country": "DE"})

    def test_member_of_scalar(self):
        """Test member access on a scalar fails."""
        with pytest.raises(ExpressionEvaluationError, match="has no members"):
            run("Age.years > 1", Age=3)

    @pytest.mark.parametrize("text,variables", [
        ('Age == "20"', {"Age": 20}),
        ("Flag == 1", {"Flag": True}),
        ('Age > "a"', {"Age": 20}),
        ("Age > null", {"Age": 20}),
        ("Beta > false", {"Beta": True}),
        ('-Name == 1', {"Name": "x"}),
    ])
    def test_incompatible_operands(self, text, variables):
        """Test type mismatches fail instead of comparing."""
        with pytest.raises(ExpressionEvaluationError, match="incompatible"):
            run(text, **variables)

    def test_logical_operands_must_be_boolean(self):
        """Test logical operators reject non-booleans."""
        with pytest.raises(ExpressionEvaluationError, match="requires boolean operands"):
            run("Age && true", Age=3)

    def test_result_must_be_boolean(self):
        """Test non-boolean results fail."""
        with pytest.raises(ExpressionEvaluationError, match="must evaluate to a boolean"):
            run("Age", Age=3)
