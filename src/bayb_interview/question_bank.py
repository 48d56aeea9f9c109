"""QuestionBank: loads the interview catalog YAML into typed models.

The bank is the single source of truth for question data at runtime.  It is
loaded once at startup and provides lookup by id and catalog position.

Usage::

    bank = QuestionBank()          # defaults to the packaged catalog
    bank.load()                    # parse the YAML file

    q = bank.get("q6")
    bank.index_of("q7")            # catalog position
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator

import yaml
from pydantic import ValidationError

from bayb_interview.constants import INTRO_QID
from bayb_interview.models.question import QuestionDefinition

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "onboarding.yaml"


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def find_authoring_errors(questions: Iterable[QuestionDefinition]) -> list[str]:
    """Return human-readable catalog authoring problems (empty if none).

    Checks:
      - the catalog is not empty and opens with the unconditional intro
      - ids are unique
      - answer fields are unique
      - conditions only reference fields written by earlier questions
    """
    questions = list(questions)
    errors: list[str] = []

    if not questions:
        return ["catalog is empty"]

    first = questions[0]
    if first.id != INTRO_QID or first.is_conditional:
        errors.append(
            f"first question must be the unconditional '{INTRO_QID}', got '{first.id}'"
        )

    seen_ids: set[str] = set()
    written: dict[str, str] = {}
    for q in questions:
        if q.id in seen_ids:
            errors.append(f"duplicate question id '{q.id}'")
        seen_ids.add(q.id)

        # Forward-only dependency: only fields collected above this question
        for field in sorted(q.referenced_fields):
            if field not in written:
                errors.append(
                    f"question '{q.id}' condition references '{field}', "
                    f"which no earlier question collects"
                )

        if q.answer_field in written:
            errors.append(
                f"answer field '{q.answer_field}' of '{q.id}' is already "
                f"collected by '{written[q.answer_field]}'"
            )
        else:
            written[q.answer_field] = q.id

    return errors


class QuestionBank:
    """Ordered, immutable catalog of interview questions.

    Attributes populated after :meth:`load`:

        questions: tuple[QuestionDefinition, ...] in catalog order
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else DEFAULT_CATALOG_PATH

        # Populated by load()
        self.questions: tuple[QuestionDefinition, ...] = ()
        self._by_id: dict[str, QuestionDefinition] = {}
        self._index: dict[str, int] = {}

    @classmethod
    def from_questions(cls, questions: Iterable[QuestionDefinition | dict]) -> "QuestionBank":
        """Build a bank from in-memory definitions (or raw dicts)."""
        bank = cls()
        bank._set_questions(
            q if isinstance(q, QuestionDefinition) else QuestionDefinition(**q)
            for q in questions
        )
        return bank

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse the catalog YAML into typed models.

        Raises ``FileNotFoundError`` if the file is missing and ``ValueError``
        if an entry is malformed or an id is repeated.
        """
        raw = load_yaml(self._path)
        if not isinstance(raw, list):
            raise ValueError(f"Catalog {self._path} must be a list of questions")

        parsed: list[QuestionDefinition] = []
        for i, q_dict in enumerate(raw):
            try:
                parsed.append(QuestionDefinition(**q_dict))
            except (TypeError, ValidationError) as exc:
                raise ValueError(f"Invalid question #{i} in {self._path}: {exc}") from exc

        self._set_questions(parsed)
        logger.info(
            "QuestionBank loaded: %d questions, %d conditional, %d sections",
            len(self.questions),
            sum(1 for q in self.questions if q.is_conditional),
            len(self.sections),
        )

    def _set_questions(self, questions: Iterable[QuestionDefinition]) -> None:
        ordered = tuple(questions)
        by_id: dict[str, QuestionDefinition] = {}
        for q in ordered:
            if q.id in by_id:
                raise ValueError(f"Duplicate question id '{q.id}'")
            by_id[q.id] = q
        self.questions = ordered
        self._by_id = by_id
        self._index = {q.id: i for i, q in enumerate(ordered)}

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get(self, qid: str) -> QuestionDefinition:
        """Look up a question by id.

        Raises:
            KeyError: if the id is not in the catalog.
        """
        return self._by_id[qid]

    def index_of(self, qid: str) -> int:
        """Catalog position of ``qid`` (KeyError if unknown)."""
        return self._index[qid]

    @property
    def sections(self) -> list[str]:
        """Section labels in catalog order, without repeats."""
        return list(dict.fromkeys(q.section for q in self.questions))

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[QuestionDefinition]:
        return iter(self.questions)
