"""Versioned prompt template for the ranking oracle.

The template is an immutable dataclass so the delegate never builds prompt
text inline.  Sections for empty interaction lists are omitted.
"""

from __future__ import annotations

from dataclasses import dataclass

from readrec.models import CatalogItem


@dataclass(frozen=True)
class PromptTemplate:
    """Immutable prompt template with a system message and a user message.

    Attributes:
        name: Identifier used in log lines.
        version: Bumped whenever the wording changes.
        system: System message defining the oracle persona and output format.
        user_template: User message with ``{variable}`` placeholders.
    """

    name: str
    version: str
    system: str
    user_template: str

    def render(self, **kwargs: object) -> dict[str, str]:
        """Render template with variables, returning system + user messages."""
        return {
            "system": self.system,
            "user": self.user_template.format(**kwargs),
        }


RANK_BOOKS = PromptTemplate(
    name="rank_books",
    version="1.0",
    system=(
        "You are a book expert. Analyse the reader's preferences:\n"
        "1. Books under LIKED are what the reader enjoys.\n"
        "2. Books under DISLIKED are what the reader does NOT enjoy. "
        "It is important to avoid anything similar.\n"
        "3. Books under COMPLETED are books the reader has already finished; "
        "treat them as additional taste signal.\n\n"
        "Recommend books similar to the liked ones and unlike the disliked ones. "
        "Especially avoid the genres and authors of disliked books.\n\n"
        "Return ONLY the IDs of the recommended books, separated by commas."
    ),
    user_template=(
        "{sections}"
        "AVAILABLE BOOKS (ID - Title - Author - Genres):\n"
        "{candidates}\n\n"
        "Analyse the reader's preferences and recommend {limit} books from the "
        "available list that:\n"
        "1. Match the genres/authors of the liked books\n"
        "2. Do NOT share genres/authors with the disliked books (this is very important!)\n"
        "3. Are varied and interesting\n\n"
        'Return ONLY the IDs of the recommended books, separated by commas. '
        'For example: "15,7,23,42,8,12,31,19"\n'
        "Recommendations:"
    ),
)

_SECTION_HEADINGS = (
    ("liked", "LIKED BOOKS"),
    ("disliked", "DISLIKED BOOKS (IMPORTANT: AVOID ANYTHING SIMILAR)"),
    ("completed", "COMPLETED BOOKS"),
)


def format_interaction_line(item: CatalogItem) -> str:
    return f'- "{item.title}" ({item.author}) - Genres: {item.genres}'


def format_candidate_line(item: CatalogItem) -> str:
    return f'{item.item_id}. "{item.title}" - {item.author} ({item.genres})'


def render_ranking_prompt(
    liked: list[CatalogItem],
    disliked: list[CatalogItem],
    completed: list[CatalogItem],
    candidates: list[CatalogItem],
    limit: int,
) -> dict[str, str]:
    """Build the system and user messages for one ranking request."""
    groups = {"liked": liked, "disliked": disliked, "completed": completed}
    sections = ""
    for key, heading in _SECTION_HEADINGS:
        items = groups[key]
        if items:
            lines = "\n".join(format_interaction_line(item) for item in items)
            sections += f"{heading}:\n{lines}\n\n"

    return RANK_BOOKS.render(
        sections=sections,
        candidates="\n".join(format_candidate_line(item) for item in candidates),
        limit=limit,
    )
