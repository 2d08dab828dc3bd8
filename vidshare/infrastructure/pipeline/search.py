# vidshare/infrastructure/pipeline/search.py
"""
Text search backends

Full-text search is an external concern. The compiler only needs a WHERE
clause for a SearchText stage, so the backend is pluggable; the default is a
case-insensitive substring match that works on every SQL dialect.
"""

from typing import Any, Protocol, Sequence, runtime_checkable

from sqlalchemy import and_, or_, true


@runtime_checkable
class TextSearchBackend(Protocol):
    def clause(self, columns: Sequence[Any], term: str, index: str) -> Any:
        """WHERE clause selecting rows whose columns match term."""
        ...


class SubstringSearchBackend:
    """Matches when any column contains every word of the term"""

    ESCAPE = "\\"

    def _escape(self, word: str) -> str:
        return (
            word.replace(self.ESCAPE, self.ESCAPE * 2)
            .replace("%", self.ESCAPE + "%")
            .replace("_", self.ESCAPE + "_")
        )

    def clause(self, columns: Sequence[Any], term: str, index: str) -> Any:
        words = term.split()
        conditions = []
        for word in words:
            pattern = f"%{self._escape(word)}%"
            conditions.append(
                or_(*(column.ilike(pattern, escape=self.ESCAPE) for column in columns))
            )
        # every word must hit some column
        return and_(*conditions) if conditions else true()
