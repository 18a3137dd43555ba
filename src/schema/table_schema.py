from pydantic import BaseModel


class TableSchema(BaseModel):
    """One relational table and its full structural definition.

    ``definition_text`` is the DDL-equivalent text (``SHOW CREATE TABLE`` output)
    used both as the embedding input and as the payload stored in the index.
    """

    name: str
    definition_text: str

    model_config = {"frozen": True}
