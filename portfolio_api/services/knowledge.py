"""
Knowledge Provider

Loads the static portfolio knowledge corpus once per process and builds the
bounded system context that is prepended to the first message of a chat
session. Sections are selected by keyword overlap with the user's message.
"""

import json
import logging
import re
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..errors import ConfigurationError
from ..utils.debug_logger import debug_logger

logger = logging.getLogger(__name__)

ALWAYS_INCLUDED_SECTION = "about"
MAX_SELECTED_SECTIONS = 3

DEFAULT_SYSTEM_PROMPT = """You are the assistant on {owner}'s portfolio website. Visitors ask about {owner}'s background, skills, projects and experience.

CONVERSATION GUIDELINES:
- Answer using the information below; do not invent employers, dates or projects
- Keep answers short and conversational
- If the answer is not covered, say so and suggest the contact form

INFORMATION ABOUT {owner}:
{context}"""

_WORD_RE = re.compile(r"[a-z0-9+#]+")


class KnowledgeSection(BaseModel):
    id: str
    title: str
    keywords: List[str] = Field(default_factory=list)
    content: str


class KnowledgeCorpus(BaseModel):
    sections: List[KnowledgeSection]


class KnowledgeBase:
    """Process-wide, read-only knowledge corpus with one-time loading"""

    def __init__(self, path: str, owner: str = "the portfolio owner", max_chars: int = 3000,
                 prompt_template: Optional[str] = None):
        self.path = Path(path)
        self.owner = owner
        self.max_chars = max_chars
        self.prompt_template = prompt_template or DEFAULT_SYSTEM_PROMPT
        self._sections: Tuple[KnowledgeSection, ...] = ()
        self._loaded = False
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def sections(self) -> Tuple[KnowledgeSection, ...]:
        return self._sections

    def load(self) -> None:
        """Read the corpus file. Only the first call does any work."""
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
                corpus = KnowledgeCorpus.model_validate(raw)
            except FileNotFoundError as e:
                raise ConfigurationError(f"Knowledge file not found: {self.path}") from e
            except (json.JSONDecodeError, PydanticValidationError) as e:
                raise ConfigurationError(f"Knowledge file is malformed: {self.path}") from e

            self._sections = tuple(corpus.sections)
            self._loaded = True
            logger.info("Loaded %d knowledge sections from %s", len(self._sections), self.path)

    def get_section(self, section_id: str) -> Optional[KnowledgeSection]:
        return next((s for s in self._sections if s.id == section_id), None)

    def select_sections(self, message: str) -> List[KnowledgeSection]:
        """
        Pick the sections most relevant to a message

        The about section is always first; up to MAX_SELECTED_SECTIONS others
        follow, ordered by score and then by corpus order.

        Args:
            message: The user's message

        Returns:
            Selected sections
        """
        text = message.lower()
        words = set(_WORD_RE.findall(text))

        selected: List[KnowledgeSection] = []
        scored: List[Tuple[int, int, KnowledgeSection]] = []
        for index, section in enumerate(self._sections):
            if section.id == ALWAYS_INCLUDED_SECTION:
                selected.append(section)
                continue
            score = self._score(section, text, words)
            if score > 0:
                scored.append((-score, index, section))

        scored.sort(key=lambda item: (item[0], item[1]))
        selected.extend(section for _, _, section in scored[:MAX_SELECTED_SECTIONS])
        return selected

    def build_context(self, message: str) -> str:
        """
        Build the system context for a message

        Args:
            message: The user's message

        Returns:
            Prompt text no longer than max_chars (plus a trailing ellipsis when cut)
        """
        sections = self.select_sections(message)
        body = "\n\n".join(f"## {s.title}\n{s.content.strip()}" for s in sections)
        context = self.prompt_template.format(owner=self.owner, context=body)

        debug_logger.log_knowledge(
            None,
            f"Selected sections {[s.id for s in sections]} ({len(context)} chars)",
        )
        return self._truncate(context)

    @staticmethod
    def _score(section: KnowledgeSection, text: str, words: set) -> int:
        score = 0
        for keyword in section.keywords:
            keyword = keyword.lower()
            if " " in keyword:
                if keyword in text:
                    score += 2
            elif keyword in words:
                score += 1
        score += len(words & set(_WORD_RE.findall(section.title.lower())))
        return score

    def _truncate(self, text: str) -> str:
        if len(text) <= self.max_chars:
            return text

        # Prefer cutting at a paragraph or sentence boundary near the limit
        trimmed = text[:self.max_chars]
        last_paragraph = trimmed.rfind("\n\n")
        last_period = trimmed.rfind(". ")
        if last_paragraph > self.max_chars * 0.8:
            return trimmed[:last_paragraph]
        if last_period > self.max_chars * 0.8:
            return trimmed[:last_period + 1]
        return trimmed + "..."
