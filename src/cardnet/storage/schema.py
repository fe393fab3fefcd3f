"""Neo4j schema setup - constraints and indexes for cards."""

# Schema setup queries
SCHEMA_QUERIES = [
    # Uniqueness constraints
    "CREATE CONSTRAINT card_id IF NOT EXISTS FOR (c:Card) REQUIRE c.id IS UNIQUE",
    # Lookup indexes
    "CREATE INDEX card_board IF NOT EXISTS FOR (c:Card) ON (c.board_id)",
    "CREATE INDEX card_column IF NOT EXISTS FOR (c:Card) ON (c.column_type)",
]


def get_all_schema_queries() -> list[str]:
    """Get all schema setup queries."""
    return list(SCHEMA_QUERIES)
