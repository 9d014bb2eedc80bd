from skillcheck.core.services.diagnostic_codes import FIXABLE_CODES, DiagnosticCode


def test_every_code_is_distinct():
    values = [code.value for code in DiagnosticCode]
    assert len(values) == len(set(values))


def test_codes_are_category_prefixed():
    for code in DiagnosticCode:
        assert code.value[0] in "EWISCPHAKX", code
        assert len(code.value) == 4
        assert code.value[1:].isdigit()


def test_fixable_codes_are_plain_strings():
    assert FIXABLE_CODES == {"E002", "E003", "E006", "E012"}
    assert "E003" in FIXABLE_CODES
    assert "E001" not in FIXABLE_CODES
