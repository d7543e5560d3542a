from coldstore.dialects import PostgresDialect


def test_postgres_identifier_quoting():
    dialect = PostgresDialect()
    assert dialect.quote_identifier("documents") == '"documents"'
    assert dialect.quote_identifier("graphs.documents") == '"graphs"."documents"'


def test_postgres_placeholder():
    assert PostgresDialect().parameter_placeholder() == "%s"


def test_postgres_documents_table():
    rendered = PostgresDialect().create_documents_table("docs")
    assert "revision TEXT NOT NULL" in rendered
    assert "deleted SMALLINT NOT NULL DEFAULT 0" in rendered
