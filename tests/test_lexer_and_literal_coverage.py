from __future__ import annotations

import importlib.util
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required to import calc_jax")
class LexerAndLiteralCoverageTests(unittest.TestCase):
    def test_integer_literals_require_trailing_separator(self) -> None:
        from calc_jax.errors import CalcParseError
        from calc_jax.lexer import scan_integer

        self.assertEqual(scan_integer("10_ + 1", 0).node, "10_")
        self.assertEqual(scan_integer("10_ + 1", 0).end, 4)
        self.assertEqual(scan_integer("1_000_", 0).node, "1_000_")
        with self.assertRaises(CalcParseError):
            scan_integer("10 ", 0)
        with self.assertRaises(CalcParseError):
            scan_integer("_10_", 0)

    def test_float_literals_accept_fraction_and_signed_exponent(self) -> None:
        from calc_jax.errors import CalcParseError
        from calc_jax.lexer import scan_number

        cases = {
            "3": "3",
            "3.25": "3.25",
            ".5": ".5",
            "3.25e2x": "3.25e2",
            "1E-3 ": "1E-3",
            "2e+10": "2e+10",
        }
        for source, literal in cases.items():
            with self.subTest(source=source):
                self.assertEqual(scan_number(source, 0).node, literal)
        with self.assertRaises(CalcParseError):
            scan_number("e5", 0)

    def test_scanners_skip_trailing_whitespace(self) -> None:
        from calc_jax.lexer import scan_identifier, scan_one_of, scan_word

        self.assertEqual(scan_identifier("_a1   b", 0).end, 6)
        self.assertEqual(scan_word("(", "(  x", 0).end, 3)
        self.assertEqual(scan_one_of((">=", ">"), ">= 1", 0).node, ">=")
        self.assertEqual(scan_one_of((">=", ">"), "> 1", 0).node, ">")

    def test_keyword_must_not_run_into_identifier(self) -> None:
        from calc_jax.errors import CalcParseError
        from calc_jax.lexer import scan_keyword

        self.assertEqual(scan_keyword("let", "let x", 0).end, 4)
        with self.assertRaises(CalcParseError):
            scan_keyword("let", "letx", 0)

    def test_failures_carry_offset_expected_and_found(self) -> None:
        from calc_jax.lexer import fail

        err = fail("ab", 1, "Expected digit", "digit")
        self.assertEqual((err.start, err.end), (1, 2))
        self.assertEqual(err.expected, ("digit",))
        self.assertEqual(err.found, "'b'")

        at_end = fail("ab", 2, "Expected digit", "digit")
        self.assertEqual((at_end.start, at_end.end), (2, 2))
        self.assertEqual(at_end.found, "end of input")
        self.assertIn("at span [2, 2)", str(at_end))


if __name__ == "__main__":
    unittest.main()
