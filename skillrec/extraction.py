from __future__ import annotations

"""
Multi-method skill extraction from free text.

Four independent passes run over the same preprocessed document:

* direct catalog matching (exact and partial multi-word hits)
* experience / technology / certification phrase templates
* part-of-speech candidates compared to the catalog by character-set
  Jaccard similarity
* explicit "Skills:" style sections, delimited by a line scan

Each pass implements :class:`ExtractionMethod`; :class:`SkillExtractor`
runs them in order, isolates failures, merges candidates by canonical
name (max confidence, union of method tags), infers a proficiency level
from the surrounding text and applies the confidence / count filters.

Example::

    from skillrec.extraction import SkillExtractor
    skills = SkillExtractor().extract("5+ years of Python, proficient in Docker")
    for s in skills:
        print(s.name, s.level, round(s.confidence, 2), sorted(m.value for m in s.methods))

"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from loguru import logger

from .catalog import DEFAULT_CATALOG, SkillCatalog
from .config import (
    CONTEXT_WINDOW_CHARS,
    DEFAULT_SKILL_LEVEL,
    DIRECT_MATCH_CONFIDENCE,
    EXTRACT_MAX_SKILLS,
    EXTRACT_MIN_CONFIDENCE,
    LEVEL_INDICATORS,
    NLP_MATCH_FACTOR,
    NON_SKILL_WORDS,
    PARTIAL_MATCH_FACTOR,
    PARTIAL_MATCH_MIN_FRACTION,
    PATTERN_MATCH_CONFIDENCE,
    SECTION_CONFIDENCE,
    SECTION_MAX_CHARS,
    SPACY_MODEL,
    STRING_MATCH_THRESHOLD,
)
from .errors import ExtractionPartialFailure
from .models import ExtractedSkill, ExtractionMethodId, canonical_skill_name
from .normalize import preprocess_for_extraction, preprocess_keep_lines


@dataclass(frozen=True)
class Candidate:
    name: str
    confidence: float
    method: ExtractionMethodId


@dataclass(frozen=True)
class PreparedText:
    """The two views of one input every pass works from."""

    flat: str
    lines: str

    @classmethod
    def from_raw(cls, raw: str) -> "PreparedText":
        return cls(flat=preprocess_for_extraction(raw), lines=preprocess_keep_lines(raw))


class ExtractionMethod(Protocol):
    method_id: ExtractionMethodId

    def run(self, doc: PreparedText) -> List[Candidate]:
        ...


# ---------------------------
# Shared helpers
# ---------------------------

def _mention_re(name: str) -> re.Pattern:
    # \b fails next to "+" / "#", so use explicit word-char lookarounds
    return re.compile(rf"(?<!\w){re.escape(name)}(?!\w)", re.IGNORECASE)


def calculate_string_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the two strings' character sets."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def find_best_skill_match(
    term: str, catalog: SkillCatalog = DEFAULT_CATALOG
) -> Optional[Tuple[str, float]]:
    """Return ``(skill, similarity)`` for the closest catalog entry above threshold."""
    term = canonical_skill_name(term)
    if not term:
        return None
    known = catalog.canonical(term)
    if known is not None:
        return known, 1.0
    best: Optional[Tuple[str, float]] = None
    for skill in catalog.all_skills:
        sim = calculate_string_similarity(term, skill)
        if sim > STRING_MATCH_THRESHOLD and (best is None or sim > best[1]):
            best = (skill, sim)
    return best


def is_valid_skill(item: str, catalog: SkillCatalog = DEFAULT_CATALOG) -> bool:
    if item in catalog:
        return True
    if len(item) < 2 or len(item) > 50:
        return False
    if item.isdigit():
        return False
    if not re.search(r"[A-Za-z]", item):
        return False
    return item.lower() not in NON_SKILL_WORDS


def clean_extracted_text(text: str) -> List[str]:
    """Split a captured span into trimmed candidate items."""
    items = [part.strip() for part in re.split(r"[,;]", text)]
    items = [i for i in items if 1 < len(i) < 50]
    items = [re.sub(r"^(and|or|the|a|an)\s+", "", i, flags=re.IGNORECASE) for i in items]
    return [i for i in items if len(i) > 1]


def extract_skill_context(text: str, skill_name: str, window: int = CONTEXT_WINDOW_CHARS) -> str:
    """Join the ``window``-char neighbourhoods of every mention of ``skill_name``."""
    if not text or not skill_name:
        return ""
    pieces: List[str] = []
    for m in _mention_re(skill_name).finditer(text):
        start = max(0, m.start() - window)
        end = min(len(text), m.start() + len(skill_name) + window)
        pieces.append(text[start:end])
    return " ... ".join(pieces)


_YEARS_RE = re.compile(r"(\d+)\s*(?:years?|yrs?)", re.IGNORECASE)


def _years_bucket(years: int) -> str:
    if years >= 5:
        return "expert"
    if years >= 3:
        return "advanced"
    if years >= 1:
        return "intermediate"
    return "beginner"


def score_skill_levels(context: str) -> Dict[str, float]:
    """Per-level evidence scores for a context string."""
    context = context.lower()
    scores: Dict[str, float] = {}
    for level, indicators in LEVEL_INDICATORS.items():
        weight = indicators["weight"]
        score = sum(weight for kw in indicators["keywords"] if kw in context)
        score += sum(weight * 0.8 for phrase in indicators["years"] if phrase in context)
        scores[level] = score
    for m in _YEARS_RE.finditer(context):
        scores[_years_bucket(int(m.group(1)))] += 0.8
    return scores


def analyze_skill_level(text: str, skill_name: str) -> str:
    """Infer the proficiency level of ``skill_name`` from how ``text`` talks about it.

    The highest scoring level wins.  No evidence at all, or a tie for the
    top score, falls back to ``intermediate``.
    """
    scores = score_skill_levels(extract_skill_context(text, skill_name))
    top = max(scores.values())
    if top <= 0:
        return DEFAULT_SKILL_LEVEL
    leaders = [level for level, score in scores.items() if score == top]
    return leaders[0] if len(leaders) == 1 else DEFAULT_SKILL_LEVEL


# ---------------------------
# Extraction passes
# ---------------------------

class DirectMatch:
    """Catalog entries found as whole words (0.9) or mostly word-by-word (0.7 x fraction).

    The partial check only needs each word somewhere in the text, so
    "learning machines" still counts towards "machine learning".
    """

    method_id = ExtractionMethodId.DIRECT_MATCH

    def __init__(self, catalog: SkillCatalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def run(self, doc: PreparedText) -> List[Candidate]:
        text = doc.flat.lower()
        out: List[Candidate] = []
        for skill in self.catalog.all_skills:
            if skill in text and _mention_re(skill).search(text):
                out.append(Candidate(skill, DIRECT_MATCH_CONFIDENCE, ExtractionMethodId.DIRECT_MATCH))
            words = skill.split(" ")
            if len(words) > 1:
                matched = [w for w in words if w in text]
                if len(matched) >= len(words) * PARTIAL_MATCH_MIN_FRACTION:
                    out.append(
                        Candidate(
                            skill,
                            PARTIAL_MATCH_FACTOR * len(matched) / len(words),
                            ExtractionMethodId.PARTIAL_MATCH,
                        )
                    )
        return out


SKILL_PATTERNS: List[re.Pattern] = [
    # experience
    re.compile(r"(?:experience|experienced|worked)\s+(?:with|in|on|using)\s+([^,.;]+)", re.IGNORECASE),
    re.compile(r"(?:proficient|skilled|expert)\s+(?:in|with|at)\s+([^,.;]+)", re.IGNORECASE),
    re.compile(r"(?:knowledge|understanding)\s+(?:of|in|with)\s+([^,.;]+)", re.IGNORECASE),
    re.compile(r"(?:familiar|comfortable)\s+(?:with|using)\s+([^,.;]+)", re.IGNORECASE),
    # technology
    re.compile(r"(?:using|utilized|implemented|developed)\s+([^,.;]+)", re.IGNORECASE),
    re.compile(r"(?:technologies|tools|frameworks|languages):\s*([^.;]+)", re.IGNORECASE),
    re.compile(r"(?:stack|tech stack):\s*([^.;]+)", re.IGNORECASE),
    # projects
    re.compile(r"(?:built|created|developed|designed)\s+(?:using|with)\s+([^,.;]+)", re.IGNORECASE),
    re.compile(r"(?:worked on|contributed to)\s+([^,.;]+)\s+(?:projects|applications)", re.IGNORECASE),
    # certification
    re.compile(r"(?:certified|certification)\s+(?:in|for)\s+([^,.;]+)", re.IGNORECASE),
    re.compile(r"(?:trained|training)\s+(?:in|on)\s+([^,.;]+)", re.IGNORECASE),
]


class PatternMatch:
    """Spans captured by phrase templates such as "experience with X"."""

    method_id = ExtractionMethodId.PATTERN_MATCH

    def __init__(self, catalog: SkillCatalog = DEFAULT_CATALOG, patterns: Sequence[re.Pattern] = SKILL_PATTERNS):
        self.catalog = catalog
        self.patterns = list(patterns)

    def run(self, doc: PreparedText) -> List[Candidate]:
        out: List[Candidate] = []
        for pattern in self.patterns:
            for m in pattern.finditer(doc.flat):
                for item in clean_extracted_text(m.group(1).strip()):
                    if is_valid_skill(item, self.catalog):
                        out.append(Candidate(canonical_skill_name(item), PATTERN_MATCH_CONFIDENCE, self.method_id))
        return out


@lru_cache(maxsize=2)
def _load_spacy(model_name: str):
    """Load a spaCy pipeline once; ``None`` when spaCy or the model is missing."""
    try:
        import spacy  # type: ignore[import-not-found]

        nlp = spacy.load(model_name)
        logger.info("Loaded spaCy model {}", model_name)
        return nlp
    except Exception as e:
        logger.warning("spaCy model {} unavailable ({}); linguistic pass disabled.", model_name, e)
        return None


def spacy_terms(text: str, model_name: str = SPACY_MODEL) -> List[str]:
    """Nouns, noun chunks, adjectives and organisations found by spaCy."""
    nlp = _load_spacy(model_name)
    if nlp is None:
        return []
    doc = nlp(text)
    terms: List[str] = [t.text for t in doc if t.pos_ in ("NOUN", "PROPN", "ADJ")]
    terms += [chunk.text for chunk in doc.noun_chunks]
    terms += [ent.text for ent in doc.ents if ent.label_ == "ORG"]
    return list(dict.fromkeys(terms))


class LinguisticMatch:
    """Tagger terms close enough (Jaccard > 0.7) to a catalog skill."""

    method_id = ExtractionMethodId.NLP_MATCH

    def __init__(
        self,
        catalog: SkillCatalog = DEFAULT_CATALOG,
        tagger: Optional[Callable[[str], Iterable[str]]] = None,
    ):
        self.catalog = catalog
        self.tagger = tagger or spacy_terms

    def run(self, doc: PreparedText) -> List[Candidate]:
        out: List[Candidate] = []
        for term in self.tagger(doc.flat):
            match = find_best_skill_match(term, self.catalog)
            if match:
                skill, sim = match
                out.append(Candidate(skill, sim * NLP_MATCH_FACTOR, self.method_id))
        return out


_HEADER_NAMES = (
    r"(?:technical\s+skills?|skills?|technolog(?:y|ies)|programming\s+languages?"
    r"|tools?\s+(?:and\s+)?technolog(?:y|ies)|expertise|competencies|proficiencies)"
)
# "... skills: x, y" anywhere on a line
SECTION_HEADER_RE = re.compile(rf"\b{_HEADER_NAMES}\s*:", re.IGNORECASE)
# "Skills x, y" or a bare "Skills" at the start of a line; the colon is optional
LEAD_HEADER_RE = re.compile(rf"^{_HEADER_NAMES}(?!\w)\s*:?", re.IGNORECASE)
# Any "Capitalised label:" line starts a new section
NEXT_HEADER_RE = re.compile(r"^[A-Z][^:\n]*:")


def find_skill_sections(text: str, max_chars: int = SECTION_MAX_CHARS) -> List[str]:
    """Return the body of every skills-like section in line-preserving ``text``.

    A body starts right after its header and runs over the following
    lines until a blank line, another header line, ``max_chars``
    characters, or the end of the text.
    """
    lines = text.split("\n")
    sections: List[str] = []
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        m = SECTION_HEADER_RE.search(line) or LEAD_HEADER_RE.match(line)
        if not m:
            i += 1
            continue
        first = line[m.end():].strip()
        body = [first] if first else []
        size = len(first)
        j = i + 1
        while j < len(lines) and size < max_chars:
            nxt = lines[j].strip()
            if not nxt or NEXT_HEADER_RE.match(nxt) or LEAD_HEADER_RE.match(nxt):
                break
            body.append(nxt)
            size += len(nxt) + 1
            j += 1
        content = "\n".join(body)[:max_chars]
        if content:
            sections.append(content)
        # line j closed the section and may itself be a header
        i = j
    return sections


class SectionMatch:
    """Items listed under a skills-like header, matched to the catalog."""

    method_id = ExtractionMethodId.SECTION_EXTRACTION

    def __init__(self, catalog: SkillCatalog = DEFAULT_CATALOG, confidence: float = SECTION_CONFIDENCE):
        self.catalog = catalog
        self.confidence = confidence

    def run(self, doc: PreparedText) -> List[Candidate]:
        out: List[Candidate] = []
        for section in find_skill_sections(doc.lines):
            for raw in re.split(r"[,;•\n]", section):
                item = re.sub(r"^[-•]\s*", "", raw.strip()).strip().rstrip(".:").strip()
                if len(item) <= 1 or not is_valid_skill(item, self.catalog):
                    continue
                match = find_best_skill_match(item, self.catalog)
                if match:
                    skill, sim = match
                    out.append(Candidate(skill, self.confidence * sim, self.method_id))
        return out


def default_methods(
    catalog: SkillCatalog = DEFAULT_CATALOG,
    tagger: Optional[Callable[[str], Iterable[str]]] = None,
) -> List[ExtractionMethod]:
    return [
        DirectMatch(catalog),
        PatternMatch(catalog),
        LinguisticMatch(catalog, tagger=tagger),
        SectionMatch(catalog),
    ]


# ---------------------------
# Pipeline
# ---------------------------

def merge_candidates(candidates: Iterable[Candidate]) -> Dict[str, ExtractedSkill]:
    """Deduplicate by canonical name keeping the max confidence."""
    merged: Dict[str, ExtractedSkill] = {}
    for c in candidates:
        key = canonical_skill_name(c.name)
        if not key:
            continue
        conf = min(max(c.confidence, 0.0), 1.0)
        if key in merged:
            item = merged[key]
            item.confidence = max(item.confidence, conf)
            item.methods.add(c.method)
        else:
            merged[key] = ExtractedSkill(name=key, confidence=conf, methods={c.method})
    return merged


class SkillExtractor:
    """Runs the configured extraction passes and post-processes their output."""

    def __init__(
        self,
        methods: Optional[Sequence[ExtractionMethod]] = None,
        catalog: SkillCatalog = DEFAULT_CATALOG,
    ):
        self.catalog = catalog
        self.methods: List[ExtractionMethod] = list(methods) if methods is not None else default_methods(catalog)

    def run_methods(self, doc: PreparedText) -> List[Candidate]:
        found: List[Candidate] = []
        for method in self.methods:
            try:
                found.extend(method.run(doc))
            except Exception as e:
                err = ExtractionPartialFailure(method.method_id.value, e)
                logger.exception("{}; continuing with remaining methods", err)
        return found

    def extract(
        self,
        text: str,
        min_confidence: float = EXTRACT_MIN_CONFIDENCE,
        max_skills: int = EXTRACT_MAX_SKILLS,
        include_context: bool = False,
    ) -> List[ExtractedSkill]:
        """Extract a deduplicated, levelled, confidence-sorted skill list.

        Never raises: bad input gives ``[]`` and a failing pass only loses
        its own candidates.
        """
        if not isinstance(text, str) or not text.strip():
            return []
        try:
            logger.info("Starting skill extraction ({} chars)", len(text))
            doc = PreparedText.from_raw(text)
            merged = merge_candidates(self.run_methods(doc))
            skills: List[ExtractedSkill] = []
            for item in merged.values():
                if item.confidence < min_confidence:
                    continue
                item.level = analyze_skill_level(doc.flat, item.name)
                if include_context:
                    item.context = extract_skill_context(doc.flat, item.name)
                skills.append(item)
            skills.sort(key=lambda s: -s.confidence)
            skills = skills[:max_skills]
            logger.info("Extracted {} skills from text", len(skills))
            return skills
        except Exception as e:
            logger.exception("Skill extraction failed: {}", e)
            return []


if __name__ == "__main__":
    sample = input("Paste text to extract skills from: ")
    for s in SkillExtractor().extract(sample, include_context=False):
        print(f"{s.name:<28} {s.level:<13} {s.confidence:.2f} {sorted(m.value for m in s.methods)}")
