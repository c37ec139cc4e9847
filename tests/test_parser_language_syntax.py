from __future__ import annotations

import importlib.util
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


def _core(node):
    """Strip the single-child wrappers every precedence level adds."""
    from calc_jax.ast import (
        ConditionalExpression,
        ExponentialExpression,
        ProductExpression,
        RelationalExpression,
        SumExpression,
        Term,
        UnaryExpression,
    )

    while True:
        if isinstance(node, ConditionalExpression) and not node.has_branches:
            node = node.condition
        elif isinstance(node, UnaryExpression) and node.op is None:
            node = node.operand
        elif isinstance(node, ExponentialExpression) and node.exponent is None:
            node = node.base
        elif isinstance(node, (ProductExpression, SumExpression, RelationalExpression)) and node.op is None:
            node = node.left
        elif isinstance(node, Term):
            node = node.inner
        else:
            return node


@unittest.skipUnless(JAX_AVAILABLE, "jax is required to import calc_jax")
class ParserLanguageSyntaxTests(unittest.TestCase):
    def test_statement_forms(self) -> None:
        from calc_jax.ast import Assignment, FunctionDefinition, Number, ProductExpression
        from calc_jax.parser import parse

        assignment = parse("let x = 5").inner
        self.assertIsInstance(assignment, Assignment)
        self.assertEqual(assignment.name, "x")
        self.assertEqual(_core(assignment.body), Number("5"))

        definition = parse("\\sq(n) -> n * n").inner
        self.assertIsInstance(definition, FunctionDefinition)
        self.assertEqual(definition.name, "sq")
        self.assertEqual(definition.params, ("n",))
        self.assertIsInstance(_core(definition.body), ProductExpression)

        self.assertEqual(parse("\\k() -> 1").inner.params, ())
        self.assertEqual(parse("\\add(a, b) -> a + b").inner.params, ("a", "b"))

    def test_precedence_chain_nests_sum_inside_product(self) -> None:
        from calc_jax.ast import ProductExpression, SumExpression
        from calc_jax.parser import parse_expression

        node = _core(parse_expression("1 + 2 * 3"))
        self.assertIsInstance(node, ProductExpression)
        self.assertEqual(node.op, "*")
        left = _core(node.left)
        self.assertIsInstance(left, SumExpression)
        self.assertEqual(left.op, "+")

    def test_binary_levels_fold_left(self) -> None:
        from calc_jax.ast import Number, SumExpression
        from calc_jax.parser import parse_expression

        node = _core(parse_expression("8 - 3 - 2"))
        self.assertIsInstance(node, SumExpression)
        self.assertIsInstance(node.left, SumExpression)
        self.assertEqual(node.left.op, "-")
        self.assertEqual(_core(node.right), Number("2"))

    def test_exponent_is_right_associative(self) -> None:
        from calc_jax.ast import ExponentialExpression
        from calc_jax.parser import parse_expression

        node = _core(parse_expression("2 ^ 3 ^ 2"))
        self.assertIsInstance(node, ExponentialExpression)
        self.assertIsInstance(node.exponent, ExponentialExpression)
        self.assertIsNotNone(node.exponent.exponent)

    def test_relational_ascii_spellings_normalize(self) -> None:
        from calc_jax.parser import parse_expression

        cases = {
            "1 = 2": "=",
            "1 != 2": "≠",
            "1 =/= 2": "≠",
            "1 ≠ 2": "≠",
            "1 >= 2": "≥",
            "1 <= 2": "≤",
            "1 > 2": ">",
            "1 < 2": "<",
        }
        for source, op in cases.items():
            with self.subTest(source=source):
                self.assertEqual(_core(parse_expression(source)).op, op)

    def test_lateral_prefix_versus_identifiers(self) -> None:
        from calc_jax.ast import Identifier, Number, UnaryExpression
        from calc_jax.parser import parse_expression

        lateral = _core(parse_expression("j5"))
        self.assertIsInstance(lateral, UnaryExpression)
        self.assertEqual(lateral.op, "j")
        self.assertEqual(_core(lateral.operand), Number("5"))

        spaced = _core(parse_expression("j x"))
        self.assertEqual(spaced.op, "j")
        self.assertEqual(_core(spaced.operand), Identifier("x"))

        self.assertEqual(_core(parse_expression("joe")), Identifier("joe"))
        self.assertEqual(_core(parse_expression("j")), Identifier("j"))

        negated = _core(parse_expression("-3 ^ 2"))
        self.assertEqual(negated.op, "-")

    def test_conditional_branches_are_optional(self) -> None:
        from calc_jax.ast import ConditionalExpression
        from calc_jax.errors import CalcParseError
        from calc_jax.parser import parse_expression

        full = parse_expression("a ? b : c")
        self.assertIsInstance(full, ConditionalExpression)
        self.assertIsNotNone(full.then_branch)
        self.assertIsNotNone(full.else_branch)

        no_then = parse_expression("a ? : c")
        self.assertIsNone(no_then.then_branch)
        self.assertIsNotNone(no_then.else_branch)

        no_else = parse_expression("a ? b")
        self.assertIsNotNone(no_else.then_branch)
        self.assertIsNone(no_else.else_branch)

        with self.assertRaises(CalcParseError):
            parse_expression("a ?")

    def test_terms(self) -> None:
        from calc_jax.ast import FunctionCall, Integer, List, Number
        from calc_jax.parser import parse_expression

        self.assertEqual(_core(parse_expression("10_")), Integer("10_"))
        self.assertEqual(_core(parse_expression("10")), Number("10"))
        self.assertEqual(_core(parse_expression("[]")), List(()))

        nested = _core(parse_expression("[1, 2, [3]]"))
        self.assertIsInstance(nested, List)
        self.assertEqual(len(nested.items), 3)
        self.assertIsInstance(_core(nested.items[2]), List)

        call = _core(parse_expression("f(1, x)"))
        self.assertIsInstance(call, FunctionCall)
        self.assertEqual(call.name, "f")
        self.assertEqual(len(call.args), 2)
        self.assertEqual(_core(parse_expression("f()")).args, ())

    def test_round_trip_through_source(self) -> None:
        from calc_jax.ast import to_source
        from calc_jax.parser import parse

        sources = [
            "let x = 5",
            "\\sq(n) -> n * n",
            "\\k() -> 1",
            "(1 + 2) * 3",
            "-x ^ 2",
            "j 3",
            "a = b ? 1 : 2",
            "a ? : 2",
            "[1, [2, 3_]]",
            "f(1, g(2))",
            "1 != 2",
            "2 ^ 3 ^ 2",
            "8 - 3 - 2",
            "  x",
        ]
        for source in sources:
            with self.subTest(source=source):
                tree = parse(source)
                self.assertEqual(parse(to_source(tree)), tree)

    def test_malformed_statements_fail_instead_of_partially_parsing(self) -> None:
        from calc_jax.errors import CalcParseError
        from calc_jax.parser import parse

        for source in ["", "1 +", "(1", "[1, 2", "1 2", "\\f(x -> x", "2 ^", "f(1,)", "let x ="]:
            with self.subTest(source=source):
                with self.assertRaises(CalcParseError):
                    parse(source)

    def test_errors_point_at_offending_offset(self) -> None:
        from calc_jax.errors import CalcParseError
        from calc_jax.parser import parse

        with self.assertRaises(CalcParseError) as trailing:
            parse("1 2")
        self.assertEqual(trailing.exception.start, 2)
        self.assertEqual(trailing.exception.message, "Unexpected trailing input")

        with self.assertRaises(CalcParseError) as missing:
            parse("1 +")
        self.assertEqual(missing.exception.start, 3)
        self.assertEqual(missing.exception.found, "end of input")

        with self.assertRaises(CalcParseError) as deep:
            parse("let x = 1 +")
        self.assertEqual(deep.exception.start, 11)
        self.assertEqual(deep.exception.found, "end of input")

        with self.assertRaises(CalcParseError) as empty_arg:
            parse("f(1,)")
        self.assertEqual(empty_arg.exception.start, 4)
        self.assertEqual(empty_arg.exception.found, "')'")

    def test_operator_and_right_operand_are_set_together(self) -> None:
        from calc_jax.ast import Identifier, SumExpression

        with self.assertRaises(ValueError):
            SumExpression(Identifier("a"), "+")
        with self.assertRaises(ValueError):
            SumExpression(Identifier("a"), None, Identifier("b"))
        self.assertIsNone(SumExpression(Identifier("a")).op)


if __name__ == "__main__":
    unittest.main()
