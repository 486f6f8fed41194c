import pytest

from edl.errors import LexError
from edl.lexer import Lexer, TokenKind, tokenize


def kinds(source):
    return [t.kind for t in tokenize(source)]


def test_keywords_and_identifiers():
    assert kinds('let x = fn_name') == [
        TokenKind.LET, TokenKind.IDENTIFIER, TokenKind.ASSIGN, TokenKind.IDENTIFIER, TokenKind.EOF,
    ]
    tokens = tokenize('true false')
    assert [t.value for t in tokens[:2]] == [True, False]


def test_two_character_operators():
    assert kinds('== != <= >= && || .. ++') == [
        TokenKind.EQEQ, TokenKind.BANGEQ, TokenKind.LTE, TokenKind.GTE,
        TokenKind.AND, TokenKind.OR, TokenKind.DOTDOT, TokenKind.PLUSPLUS, TokenKind.EOF,
    ]
    assert kinds('= ! < > . +') == [
        TokenKind.ASSIGN, TokenKind.BANG, TokenKind.LT, TokenKind.GT,
        TokenKind.DOT, TokenKind.PLUS, TokenKind.EOF,
    ]


def test_numbers():
    tokens = tokenize('42 3.25')
    assert tokens[0].value == 42.0
    assert tokens[1].value == 3.25


def test_range_is_not_part_of_a_number():
    tokens = tokenize('0..3')
    assert [t.kind for t in tokens] == [TokenKind.NUMBER, TokenKind.DOTDOT, TokenKind.NUMBER, TokenKind.EOF]
    assert tokens[0].value == 0.0
    assert tokens[2].value == 3.0


def test_malformed_number_is_an_error():
    with pytest.raises(LexError) as exc:
        tokenize('1.2.3')
    assert exc.value.line == 1
    assert exc.value.col == 1


def test_string_escapes():
    token = tokenize(r'"a\nb\t\"c\"\\"')[0]
    assert token.kind is TokenKind.STRING
    assert token.value == 'a\nb\t"c"\\'


def test_unterminated_string_reports_start_position():
    with pytest.raises(LexError) as exc:
        tokenize('let s = "abc')
    assert 'unterminated' in exc.value.message
    assert (exc.value.line, exc.value.col) == (1, 9)


def test_comments_are_skipped():
    source = '# first\nlet a = 1; // trailing\n// last'
    assert kinds(source) == [
        TokenKind.LET, TokenKind.IDENTIFIER, TokenKind.ASSIGN, TokenKind.NUMBER,
        TokenKind.SEMICOLON, TokenKind.EOF,
    ]


def test_positions_are_one_based():
    tokens = tokenize('a\n  bc')
    assert (tokens[0].line, tokens[0].col) == (1, 1)
    assert (tokens[1].line, tokens[1].col) == (2, 3)


@pytest.mark.parametrize('ch', ['&', '|'])
def test_single_ampersand_or_pipe_names_doubled_form(ch):
    with pytest.raises(LexError) as exc:
        tokenize(f'a {ch} b')
    assert ch * 2 in exc.value.message


def test_unknown_character():
    with pytest.raises(LexError) as exc:
        tokenize('let @')
    assert exc.value.col == 5


def test_eof_is_repeated():
    lexer = Lexer('x')
    assert lexer.next_token().kind is TokenKind.IDENTIFIER
    assert lexer.next_token().kind is TokenKind.EOF
    assert lexer.next_token().kind is TokenKind.EOF


def test_number_too_large_for_a_float_is_an_error():
    with pytest.raises(LexError) as exc:
        tokenize('let n = ' + '9' * 400 + ';')
    assert exc.value.message == 'number literal out of range'
    assert (exc.value.line, exc.value.col) == (1, 9)
