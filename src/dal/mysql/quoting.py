def quote_identifier(name: str) -> str:
    """Quote a MySQL identifier with backticks, doubling embedded backticks."""
    return "`" + name.replace("`", "``") + "`"
