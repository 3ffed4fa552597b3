from __future__ import annotations
"""
Configuration for the skill-aware course recommender.
"""

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

# Paths
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = PROJECT_ROOT / "data"
SNAPSHOT_PATH = Path(os.getenv("SKILLREC_SNAPSHOT_PATH", str(DATA_DIR / "snapshot.json")))
LOG_DIR = PROJECT_ROOT / "logs"

# Hybrid weights (must sum to 1.0)
SOURCE_WEIGHTS: Dict[str, float] = {
    "collaborative": 0.35,
    "content-based": 0.35,
    "market-driven": 0.20,
    "behavioral": 0.10,
}

# Scoring thresholds / caps
MIN_SIMILARITY_THRESHOLD = 0.1
MAX_RECOMMENDATIONS = 50
MAX_NEIGHBOURS = 20
MAX_INTERACTION_WEIGHT = 2.0

# Content-based blend
CONTENT_TF_WEIGHT = 0.4
CONTENT_SKILL_WEIGHT = 0.4
CONTENT_DIFFICULTY_WEIGHT = 0.2
DIFFICULTY_PREFERENCE_MAP: Dict[str, List[str]] = {
    "beginner-friendly": ["beginner"],
    "challenging": ["advanced", "expert"],
}

# Market-driven
DEMAND_BONUS: Dict[str, float] = {"high": 0.3, "medium": 0.1, "low": 0.0}
RELATED_SKILL_BONUS = 0.2
GOAL_GAP_SCORE = 0.8

# Behavioral
BEHAVIOR_TOP_CATEGORIES = 3
BEHAVIOR_TOP_PROVIDERS = 2
BEHAVIOR_CATEGORY_SCORE = 0.4
BEHAVIOR_PROVIDER_SCORE = 0.3
BEHAVIOR_DIFFICULTY_SCORE = 0.3

# Diversification
DIVERSITY_FACTOR = 0.3
COURSE_SIM_CATEGORY = 0.4
COURSE_SIM_SKILLS = 0.4
COURSE_SIM_DIFFICULTY = 0.2

# Result policy
RESULT_DEFAULT_LIMIT = 10

# Cache
CACHE_TTL_SECONDS = int(os.getenv("SKILLREC_CACHE_TTL", "1800"))  # 30 minutes

# Concurrency
MAX_WORKERS = int(os.getenv("SKILLREC_MAX_WORKERS", "4"))

# Skill extraction
EXTRACT_MIN_CONFIDENCE = 0.3
EXTRACT_MAX_SKILLS = 50
MAX_INPUT_CHARS = 20_000
DIRECT_MATCH_CONFIDENCE = 0.9
PARTIAL_MATCH_FACTOR = 0.7
PARTIAL_MATCH_MIN_FRACTION = 0.7
PATTERN_MATCH_CONFIDENCE = 0.7
NLP_MATCH_FACTOR = 0.6
STRING_MATCH_THRESHOLD = 0.7
SECTION_CONFIDENCE = 0.8
SECTION_MAX_CHARS = 500
CONTEXT_WINDOW_CHARS = 100
SPACY_MODEL = os.getenv("SKILLREC_SPACY_MODEL", "en_core_web_sm")

NON_SKILL_WORDS: List[str] = [
    "experience", "knowledge", "skills", "ability", "years", "months",
    "project", "work", "team", "company", "role", "position", "job",
]

# Level inference vocabulary, strongest first
LEVEL_INDICATORS: Dict[str, Dict] = {
    "expert": {
        "keywords": ["expert", "senior", "lead", "architect", "principal", "staff", "distinguished", "fellow"],
        "years": ["8+", "9+", "10+", "5+ years", "6+ years", "7+ years", "8+ years", "9+ years", "10+ years"],
        "weight": 1.0,
    },
    "advanced": {
        "keywords": ["advanced", "proficient", "experienced", "skilled", "strong", "solid", "extensive"],
        "years": ["4+", "5+", "3+ years", "4+ years", "5+ years"],
        "weight": 0.8,
    },
    "intermediate": {
        "keywords": ["intermediate", "familiar", "working knowledge", "competent", "moderate", "some experience"],
        "years": ["2+", "3+", "1+ years", "2+ years", "3+ years"],
        "weight": 0.6,
    },
    "beginner": {
        "keywords": ["beginner", "basic", "learning", "novice", "entry", "junior", "trainee", "intern"],
        "years": ["<1", "0-1", "6 months", "1 year"],
        "weight": 0.3,
    },
}
DEFAULT_SKILL_LEVEL = "intermediate"

# Suggestions
SUGGESTION_LIMIT = 20
PRIORITY_WEIGHTS: Dict[str, int] = {"critical": 4, "high": 3, "medium": 2, "low": 1}
COMPLEMENTARY_SKILLS: Dict[str, List[str]] = {
    "javascript": ["react", "node.js", "typescript", "vue", "angular"],
    "python": ["django", "flask", "pandas", "numpy", "machine learning"],
    "react": ["redux", "next.js", "typescript", "jest", "webpack"],
    "aws": ["docker", "kubernetes", "terraform", "jenkins"],
    "machine learning": ["python", "tensorflow", "pytorch", "pandas", "numpy"],
}

# Market data (mock trends used when no provider URL is configured)
MARKET_DATA_URL: Optional[str] = os.getenv("SKILLREC_MARKET_URL") or None
DEFAULT_TRENDING_SKILLS: List[Dict] = [
    {"skill": "artificial intelligence", "growth_rate": 45, "demand_level": "high"},
    {"skill": "machine learning", "growth_rate": 38, "demand_level": "high"},
    {"skill": "cloud computing", "growth_rate": 32, "demand_level": "high"},
    {"skill": "data science", "growth_rate": 28, "demand_level": "medium"},
    {"skill": "cybersecurity", "growth_rate": 25, "demand_level": "high"},
]

# HTTP hardening
HTTP_CONNECT_TIMEOUT = 3.0
HTTP_READ_TIMEOUT = 7.0
HTTP_MAX_REDIRECTS = 2
HTTP_MAX_BYTES = 1_000_000
HTTP_USER_AGENT = "skillrec/1.0"


def configure_logging(level: str = "INFO") -> None:
    """Route loguru to stderr plus a rotating file under ``LOG_DIR``."""
    LOG_DIR.mkdir(exist_ok=True)
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(LOG_DIR / "skillrec.log", level=level, rotation="10 MB", retention=5)


# Pydantic schemas for the service layer
class HealthResponse(BaseModel):
    status: str


class ExtractRequest(BaseModel):
    text: str = Field(..., min_length=1)
    min_confidence: float = Field(EXTRACT_MIN_CONFIDENCE, ge=0.0, le=1.0)
    max_skills: int = Field(EXTRACT_MAX_SKILLS, ge=1)
    include_context: bool = False


class ExtractedSkillItem(BaseModel):
    name: str
    confidence: float
    level: str
    methods: List[str]
    context: Optional[str] = None


class ExtractResponse(BaseModel):
    skills: List[ExtractedSkillItem]
