from dbretry.utils import split_sql, unique_table


class TestSplitSql:
    def test_splits_statements(self):
        assert split_sql("INSERT INTO t VALUES (1); INSERT INTO t VALUES (2);") == [
            "INSERT INTO t VALUES (1);",
            "INSERT INTO t VALUES (2);",
        ]

    def test_semicolon_inside_literal(self):
        assert split_sql("INSERT INTO t VALUES ('a;b');") == ["INSERT INTO t VALUES ('a;b');"]

    def test_blank_input(self):
        assert split_sql("  \n ") == []


class TestUniqueTable:
    def test_quotes_schema_and_table(self):
        assert unique_table("db", "t") == "`db`.`t`"

    def test_escapes_backticks(self):
        assert unique_table("d`b", "t") == "`d``b`.`t`"
