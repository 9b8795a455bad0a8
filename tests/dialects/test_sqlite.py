from crudmap.dialects import SQLiteDialect


def test_sqlite_dialect_uses_qmark():
    dialect = SQLiteDialect()
    assert dialect.placeholder(0) == "?"
    assert dialect.placeholder(7) == "?"
    assert dialect.numbered is False
    assert dialect.count_placeholders("a = ? AND b = ?") == 2


def test_sqlite_limit_clause_with_offset_only():
    dialect = SQLiteDialect()
    assert dialect.limit_clause(10, 20) == "LIMIT 10 OFFSET 20"
    assert dialect.limit_clause(None, 5) == "LIMIT -1 OFFSET 5"


def test_sqlite_date_convert_binds_text_unchanged():
    dialect = SQLiteDialect()
    assert dialect.date_convert("2024-01-02", 4) == ("?", "2024-01-02")
