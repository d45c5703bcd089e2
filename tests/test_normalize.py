import pytest

from coderunner.normalize import normalize_output, outputs_match


@pytest.mark.parametrize(
    'raw, expected',
    [
        ('7\n', '7'),
        ('  7  \n\n', '7'),
        ('1 2 \r\n3\r\n', '1 2\n3'),
        ('a\n\n\nb\n', 'a\nb'),
        ('a   \n   \nb', 'a\nb'),
        ('\n\n  indented\nnext', 'indented\nnext'),
        ('x\n  y', 'x\n  y'),
        ('', ''),
        (None, ''),
        ('   \n\t\n', ''),
    ],
)
def test_normalize_output(raw, expected):
    assert normalize_output(raw) == expected


@pytest.mark.parametrize(
    'text',
    ['7\n', ' a \r\n\r\n b \n', 'line\n\n\n  two  \n', '\t\tx\ny\t', 'a\rb\n', ''],
)
def test_normalize_is_idempotent(text):
    once = normalize_output(text)
    assert normalize_output(once) == once


def test_line_order_is_significant():
    assert not outputs_match('1\n2', '2\n1')


def test_trailing_spaces_and_blank_lines_are_ignored():
    assert outputs_match('3 4   \n\n5\n', '3 4\n5')


def test_inner_spacing_is_significant():
    assert not outputs_match('3  4', '3 4')
