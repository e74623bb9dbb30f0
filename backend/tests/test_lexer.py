"""Tokenizer tests: token kinds, comments, operators and lenient diagnostics."""

import logging

from backend.indiscript.lexer import Lexer, tokenize


def kinds(tokens):
    return [t.kind for t in tokens]


def texts(tokens):
    return [t.text for t in tokens]


def test_declaration_tokens():
    toks = tokenize("srsti x = 10")
    assert kinds(toks) == ["keyword", "identifier", "operator", "number"]
    assert texts(toks) == ["srsti", "x", "=", "10"]


def test_keywords_depend_on_dialect():
    assert tokenize("mudran x", "kannada")[0].kind == "identifier"
    assert tokenize("mudran x", "sanskrit")[0].kind == "keyword"
    assert tokenize("mudrisu x", "sanskrit")[0].kind == "identifier"


def test_two_char_operators_widen():
    toks = tokenize("a <= b != c == d >= e < f > g = h ! i")
    ops = [t.text for t in toks if t.kind == "operator"]
    assert ops == ["<=", "!=", "==", ">=", "<", ">", "=", "!"]


def test_minus_is_separate_from_number():
    toks = tokenize("-5")
    assert kinds(toks) == ["operator", "number"]
    assert texts(toks) == ["-", "5"]


def test_punctuation_kinds():
    toks = tokenize("( ) { } [ ] , ;")
    assert kinds(toks) == ["paren", "paren", "brace", "brace", "bracket", "bracket", "comma", "semicolon"]


def test_comments_are_skipped():
    src = "// heading\nmudrisu 1 /* block\ncomment */ mudrisu 2 // trailing"
    assert texts(tokenize(src)) == ["mudrisu", "1", "mudrisu", "2"]


def test_unterminated_block_comment_consumes_rest():
    lexer = Lexer("mudrisu 1 /* never closed mudrisu 2")
    assert texts(lexer.tokenize()) == ["mudrisu", "1"]
    assert lexer.diagnostics == []


def test_identifiers_allow_digits_and_underscores():
    toks = tokenize("_count2 x9y")
    assert kinds(toks) == ["identifier", "identifier"]
    assert texts(toks) == ["_count2", "x9y"]


def test_string_escapes():
    toks = tokenize(r'"say \"hi\"\n"')
    assert toks[0].kind == "string"
    assert toks[0].text == 'say "hi"\n'


def test_positions_are_recorded():
    toks = tokenize("srsti x\n  mudrisu x")
    assert (toks[2].line, toks[2].column) == (2, 3)


def test_unexpected_character_is_skipped_and_reported(caplog):
    lexer = Lexer("mudrisu 1 @ 2")
    with caplog.at_level(logging.WARNING):
        toks = lexer.tokenize()
    assert texts(toks) == ["mudrisu", "1", "2"]
    assert len(lexer.diagnostics) == 1
    assert lexer.diagnostics[0].message == "Unexpected character: @"
    assert (lexer.diagnostics[0].line, lexer.diagnostics[0].column) == (1, 11)
    assert "Unexpected character" in caplog.text


def test_unterminated_string_still_yields_token():
    lexer = Lexer('mudrisu "abc def')
    toks = lexer.tokenize()
    assert toks[-1].kind == "string"
    assert toks[-1].text == "abc def"
    assert toks[-1].terminated is False
    assert [d.message for d in lexer.diagnostics] == ["Unterminated string literal"]


def test_non_ascii_letters_are_not_identifiers():
    lexer = Lexer("ಕ x")
    assert texts(lexer.tokenize()) == ["x"]
    assert len(lexer.diagnostics) == 1
