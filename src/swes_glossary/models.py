from sqlalchemy import Column, Integer, Text
from swes_glossary.database import Base


class TermEntry(Base):
    """
    Represents one glossary entry.

    This class defines the structure of the `terms` table. Queries go through
    the storage adapter as plain SQL; the model only describes the schema so
    it can be created on either backend.

    Attributes
    ----------
    id : int
        Server generated primary key. AUTOINCREMENT on SQLite (SERIAL on
        PostgreSQL) so ids of deleted rows are never handed out again.
    term : str
        The glossary term itself.
    definition : str
        Short definition of the term.
    description : str
        Longer free-text explanation.
    category : str
        Free-form label used for grouping on the client.
    formula : str
        Math markup rendered by the client.
    formula_description : str
        Legend for the symbols used in `formula`.
    """

    __tablename__ = "terms"
    __table_args__ = {"sqlite_autoincrement": True}

    id: int = Column(Integer, primary_key=True, autoincrement=True)
    term: str = Column(Text)
    definition: str = Column(Text)
    description: str = Column(Text)
    category: str = Column(Text)
    formula: str = Column(Text)
    formula_description: str = Column(Text)
