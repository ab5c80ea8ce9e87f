"""
Tests for the Java tree builder and the check on Java sources
"""

import pytest

from condinv_core.analyzer import Analyzer, check_tree
from condinv_core.ast_base import Language, SourceParseError, TokenType, format_ast_tree
from condinv_core.ast_java import ConditionParseError, ConditionParser, JavaASTBackend, parse_java_expression
from condinv_core.check import AvoidConditionInversionCheck
from condinv_core.config import CondinvConfig

from conftest import java_method


@pytest.fixture
def backend():
    return JavaASTBackend()


def findings(source: str, strict: bool = False) -> list:
    root = JavaASTBackend().parse_string(source, "Sample.java")
    check = AvoidConditionInversionCheck(apply_only_to_relational_operands=strict)
    return [f.line for f in check_tree(root, check)]


def kinds(node) -> list:
    return [c.kind for c in node.children]


# ========== Expression parser ==========

class TestExpressionParser:
    def test_inversion_shape(self):
        expr = parse_java_expression("!((a >= 8) && (b >= 5))")
        assert expr.kind == TokenType.EXPR
        lnot = expr.first_child
        assert lnot.kind == TokenType.LNOT
        assert kinds(lnot) == [TokenType.LPAREN, TokenType.LAND, TokenType.RPAREN]
        assert kinds(lnot.children[1]) == [
            TokenType.LPAREN, TokenType.GE, TokenType.RPAREN,
            TokenType.LPAREN, TokenType.GE, TokenType.RPAREN,
        ]

    def test_precedence(self):
        expr = parse_java_expression("a || b && c == d + 1 * 2")
        lor = expr.first_child
        assert lor.kind == TokenType.LOR
        land = lor.children[1]
        assert land.kind == TokenType.LAND
        equal = land.children[1]
        assert equal.kind == TokenType.EQUAL
        assert equal.children[1].kind == TokenType.PLUS
        assert equal.children[1].children[1].kind == TokenType.STAR

    def test_left_associative(self):
        minus = parse_java_expression("a - b - c").first_child
        assert minus.kind == TokenType.MINUS
        assert minus.children[0].kind == TokenType.MINUS
        assert minus.children[1].kind == TokenType.IDENT

    def test_method_call(self):
        call = parse_java_expression("obj1.isValid(x, 2)").first_child
        assert call.kind == TokenType.METHOD_CALL
        assert kinds(call) == [TokenType.DOT, TokenType.ELIST, TokenType.RPAREN]
        assert kinds(call.children[1]) == [TokenType.IDENT, TokenType.COMMA, TokenType.NUM_INT]

    def test_instanceof(self):
        node = parse_java_expression("obj instanceof java.util.List<?>").first_child
        assert node.kind == TokenType.LITERAL_INSTANCEOF
        assert node.children[1].kind == TokenType.TYPE
        assert node.children[1].text == "java.util.List<?>"

    def test_instanceof_pattern(self):
        land = parse_java_expression("o instanceof String s && s.isEmpty()").first_child
        assert land.kind == TokenType.LAND
        assert land.children[0].kind == TokenType.LITERAL_INSTANCEOF

    def test_cast(self):
        lnot = parse_java_expression("!((String) o).isEmpty()").first_child
        assert lnot.kind == TokenType.LNOT
        call = lnot.first_child
        assert call.kind == TokenType.METHOD_CALL
        paren_group = call.first_child.children
        assert paren_group[1].kind == TokenType.TYPECAST

    def test_parenthesized_is_not_cast(self):
        minus = parse_java_expression("(a) - b").first_child
        assert minus.kind == TokenType.MINUS

    def test_lambda_argument(self):
        call = parse_java_expression("list.stream().anyMatch(x -> !(x > 0))").first_child
        assert call.kind == TokenType.METHOD_CALL
        lam = call.children[1].first_child
        assert lam.kind == TokenType.LAMBDA
        assert lam.children[1].kind == TokenType.LNOT

    def test_lambda_with_block(self):
        call = parse_java_expression("list.removeIf((a) -> { return a == null; })").first_child
        lam = call.children[1].first_child
        assert lam.kind == TokenType.LAMBDA
        assert lam.children[-1].kind == TokenType.SLIST

    def test_new_with_generics(self):
        gt = parse_java_expression("new java.util.ArrayList<String>().size() > 0").first_child
        assert gt.kind == TokenType.GT

    def test_ternary_and_assignment(self):
        ne = parse_java_expression("(line = reader.readLine()) != null").first_child
        assert ne.kind == TokenType.NOT_EQUAL
        assert ne.children[1].kind == TokenType.ASSIGN
        question = parse_java_expression("a > b ? a : b").first_child
        assert question.kind == TokenType.QUESTION

    def test_array_access_and_postfix(self):
        lt = parse_java_expression("values[i++] < values.length").first_child
        assert lt.kind == TokenType.LT
        assert lt.children[0].kind == TokenType.INDEX_OP

    def test_line_of_inversion(self):
        lnot = parse_java_expression("\n\n!(a < b)").first_child
        assert lnot.line == 3

    def test_unsupported_expression(self):
        with pytest.raises(ConditionParseError):
            parse_java_expression("a +")

    def test_trailing_tokens(self):
        with pytest.raises(ConditionParseError):
            parse_java_expression("a b")

    def test_empty(self):
        with pytest.raises(ConditionParseError):
            ConditionParser([]).parse()


# ========== Statement scanning ==========

class TestJavaBackend:
    def test_language(self, backend):
        assert backend.language == Language.JAVA
        assert ".java" in backend.file_extensions

    def test_statement_kinds(self, backend):
        source = java_method(
            "if (a > b) { }",
            "while (a > b) { a--; }",
            "do { a++; } while (a < b);",
            "for (int i = 0; i < a; i++) { }",
            "for (String s : list) { }",
            "return a == b;",
        )
        root = backend.parse_string(source)
        assert root.kind == TokenType.COMPILATION_UNIT
        assert kinds(root) == [
            TokenType.LITERAL_IF,
            TokenType.LITERAL_WHILE,
            TokenType.LITERAL_DO,
            TokenType.LITERAL_FOR,
            TokenType.LITERAL_RETURN,
        ]

    def test_if_shape(self, backend):
        root = backend.parse_string(java_method("if (!(a < b)) { }"))
        stmt = root.first_child
        assert stmt.line == 3
        assert kinds(stmt) == [TokenType.LPAREN, TokenType.EXPR, TokenType.RPAREN]

    def test_do_while_shape(self, backend):
        root = backend.parse_string(java_method("do {", "  a++;", "} while (!(a < b));"))
        stmt = root.first_child
        assert stmt.kind == TokenType.LITERAL_DO
        assert stmt.line == 3
        assert kinds(stmt) == [
            TokenType.DO_WHILE, TokenType.LPAREN, TokenType.EXPR, TokenType.RPAREN, TokenType.SEMI,
        ]

    def test_nested_while_inside_do(self, backend):
        root = backend.parse_string(java_method("do {", "  while (a > 0) { a--; }", "} while (b > 0);"))
        assert kinds(root) == [TokenType.LITERAL_WHILE, TokenType.LITERAL_DO]

    def test_for_condition(self, backend):
        root = backend.parse_string(java_method("for (int i = 0; !(i >= a); i++) { }"))
        loop = root.first_child
        condition = loop.find_first_token(TokenType.FOR_CONDITION)
        assert condition is not None
        assert condition.find_first_token(TokenType.EXPR) is not None

    def test_empty_for_condition(self, backend):
        root = backend.parse_string(java_method("for (;;) { break; }"))
        condition = root.first_child.find_first_token(TokenType.FOR_CONDITION)
        assert condition.child_count == 0

    def test_bare_return(self, backend):
        source = "class A { void f() { return; } }"
        stmt = backend.parse_string(source).first_child
        assert stmt.kind == TokenType.LITERAL_RETURN
        assert stmt.find_first_token(TokenType.EXPR) is None

    def test_unparsed_condition(self, backend):
        source = java_method(
            "if (!(switch (a) { case 1 -> true; default -> false; })) { }",
            "return !(a < b);",
        )
        root = backend.parse_string(source)
        expr = root.first_child.find_first_token(TokenType.EXPR)
        assert kinds(expr) == [TokenType.UNPARSED]
        assert root.children[-1].kind == TokenType.LITERAL_RETURN

    def test_lexer_error(self, backend):
        with pytest.raises(SourceParseError):
            backend.parse_string('class A { String s = "unterminated; }', "A.java")

    def test_format_tree(self, backend):
        text = format_ast_tree(backend.parse_string(java_method("if (!(a < b)) { }")))
        assert "LNOT [3:" in text
        assert "LITERAL_IF" in text


# ========== Check on Java sources ==========

class TestJavaInversions:
    def test_relational_conjunction(self):
        source = java_method(*["// filler"] * 7, "if (!((a >= 8) && (b >= 5))) { }")
        assert findings(source) == [10]
        assert findings(source, strict=True) == [10]

    def test_mixed_operands(self):
        source = java_method(*["// filler"] * 17, "if (!(obj instanceof String || list.isEmpty())) { }")
        assert findings(source) == [20]
        assert findings(source, strict=True) == []

    @pytest.mark.parametrize("op", ["<", "<=", ">", ">=", "==", "!="])
    def test_every_relational_operator(self, op):
        source = java_method(f"if (!(a {op} b)) {{ }}")
        assert findings(source) == [3]
        assert findings(source, strict=True) == [3]

    @pytest.mark.parametrize("condition", [
        "!(list.isEmpty())",
        "!list.isEmpty()",
        "!(obj instanceof String)",
        "!(obj == null ? false : true)",
    ])
    def test_not_reported(self, condition):
        source = java_method(f"return {condition};")
        assert findings(source) == []
        assert findings(source, strict=True) == []

    def test_identifier_operands(self):
        source = java_method("boolean x = a > 0, y = b > 0;", "while (!(x && y)) { }")
        assert findings(source) == [4]
        assert findings(source, strict=True) == []

    def test_all_statement_kinds(self):
        source = java_method(
            "if (!(a < b)) { }",
            "while (!(a < b)) { }",
            "do { } while (!(a < b));",
            "for (; !(a < b); ) { }",
            "return !(a < b);",
        )
        assert findings(source) == [3, 4, 5, 6, 7]

    def test_vacuous_statements(self):
        source = "class A { void f() { for (;;) { return; } } }"
        assert findings(source) == []

    def test_nested_negation_not_reported(self):
        source = java_method("if (!a.isEmpty() && !(b > 1)) { }")
        assert findings(source) == []

    def test_negation_inside_brackets(self):
        source = java_method("return (!(a < b));")
        assert findings(source) == [3]

    def test_multiline_condition_reports_negation_line(self):
        source = java_method("if (", "        !(a < b)) {", "}")
        assert findings(source) == [4]

    def test_lambda_inside_condition(self):
        source = java_method(
            "if (list.stream().anyMatch(s -> {",
            "    return !(s.length() > a);",
            "})) { }",
        )
        assert findings(source) == [4]

    def test_idempotent(self):
        source = java_method("if (!(a < b)) { }", "return !(a > b || obj.equals(list));")
        assert findings(source) == findings(source) == [3, 4]


class TestJavaAnalyzer:
    def test_analyze_string(self):
        analyzer = Analyzer(CondinvConfig())
        report = analyzer.analyze_string(java_method("return !(a < b);"), "Sample.java")
        assert report.language == Language.JAVA
        assert [v.line for v in report.violations] == [3]
        assert report.violations[0].message == "Avoid condition inversion."

    def test_unparsed_counted(self):
        analyzer = Analyzer(CondinvConfig())
        source = java_method("if (!(switch (a) { default -> true; })) { }")
        report = analyzer.analyze_string(source, "Sample.java")
        assert report.unparsed == 1
        assert report.violations == []
        assert report.error is None

    def test_long_concatenation(self):
        concatenation = " + ".join(['"x"'] * 1500)
        source = java_method(f"return !(({concatenation}).length() > 0);")
        report = Analyzer(CondinvConfig()).analyze_string(source, "Sample.java")
        assert report.error is None
        assert report.unparsed == 0
        assert [v.line for v in report.violations] == [3]

    def test_deeply_bracketed_condition(self):
        source = java_method("return !(" + "(" * 1500 + "a < b" + ")" * 1500 + ");", "return !(a > b);")
        report = Analyzer(CondinvConfig()).analyze_string(source, "Sample.java")
        assert report.error is None
        assert report.unparsed == 1
        assert [v.line for v in report.violations] == [4]
