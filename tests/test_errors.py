import io

from sigilc.errors import MAX_MESSAGE_LENGTH, ErrorKind, ErrorList, SigilError, SrcLoc


def test_empty_list_has_no_errors():
    errors = ErrorList()
    assert errors.has_errors() is False
    assert len(errors) == 0
    assert errors.format_all() == []


def test_add_records_in_order():
    errors = ErrorList()
    errors.add(ErrorKind.LEXER, SrcLoc("a.sigil", 1, 2), "first")
    errors.add(ErrorKind.TYPE, SrcLoc("b.sigil", 3, 4), "second")
    assert errors.has_errors() is True
    assert [e.message for e in errors] == ["first", "second"]
    assert [e.kind for e in errors] == [ErrorKind.LEXER, ErrorKind.TYPE]


def test_format_without_file_uses_input_placeholder():
    error = SigilError(ErrorKind.RESOLVE, SrcLoc(), "boom")
    assert error.format() == "<input>:0:0: resolve error: boom"


def test_format_with_file():
    error = SigilError(ErrorKind.PARSER, SrcLoc("prog.sigil", 7, 3), "unexpected")
    assert error.format() == "prog.sigil:7:3: parser error: unexpected"


def test_add_with_none_location_defaults():
    errors = ErrorList()
    error = errors.add(ErrorKind.TRAIT, None, "x")
    assert error.loc == SrcLoc()


def test_long_message_is_truncated():
    errors = ErrorList()
    error = errors.add(ErrorKind.DESUGAR, SrcLoc(), "m" * 2000)
    assert len(error.message) == MAX_MESSAGE_LENGTH


def test_print_all_writes_each_line():
    errors = ErrorList()
    errors.add(ErrorKind.LEXER, SrcLoc("f", 1, 1), "one")
    errors.add(ErrorKind.DESUGAR, SrcLoc("f", 2, 5), "two")
    buf = io.StringIO()
    errors.print_all(buf)
    assert buf.getvalue().splitlines() == errors.format_all()
    assert buf.getvalue().endswith("\n")


def test_kind_names_match_format():
    for kind in ErrorKind:
        line = SigilError(kind, SrcLoc(), "m").format()
        assert f" {kind.value} error: m" in line