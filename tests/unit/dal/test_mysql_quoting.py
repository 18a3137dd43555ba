from dal.mysql import quote_identifier


def test_quote_identifier_wraps_in_backticks():
    assert quote_identifier("users") == "`users`"


def test_quote_identifier_escapes_embedded_backticks():
    assert quote_identifier("we`ird") == "`we``ird`"
