from __future__ import annotations

"""
Static skill catalog: category -> known skill names.

The catalog is the vocabulary every extraction pass matches against and
the lookup used to categorise suggested skills.  It is plain data; a
module-level :data:`DEFAULT_CATALOG` instance is shared read-only.
"""

import re
from typing import Dict, Iterable, List, Optional

SKILLS_BY_CATEGORY: Dict[str, List[str]] = {
    "programming": [
        "javascript", "python", "java", "c++", "c#", "php", "ruby", "go", "rust", "swift",
        "kotlin", "scala", "r", "matlab", "perl", "shell", "bash", "powershell", "typescript",
        "dart", "elixir", "haskell", "clojure", "f#", "objective-c", "assembly", "cobol", "fortran",
    ],
    "web": [
        "html", "css", "sass", "less", "bootstrap", "tailwind", "react", "angular", "vue",
        "svelte", "jquery", "node.js", "express", "next.js", "nuxt.js", "gatsby", "webpack",
        "vite", "parcel", "babel", "eslint", "prettier", "jest", "cypress", "selenium",
    ],
    "backend": [
        "django", "flask", "fastapi", "spring", "spring boot", "laravel", "symfony", "rails",
        "asp.net", "express.js", "koa", "nestjs", "gin", "echo", "fiber", "actix", "rocket",
    ],
    "databases": [
        "mysql", "postgresql", "mongodb", "redis", "elasticsearch", "cassandra", "dynamodb",
        "sqlite", "oracle", "sql server", "mariadb", "couchdb", "neo4j", "influxdb", "clickhouse",
    ],
    "cloud": [
        "aws", "azure", "gcp", "google cloud", "docker", "kubernetes", "jenkins", "terraform",
        "ansible", "puppet", "chef", "vagrant", "helm", "istio", "prometheus", "grafana",
        "elk stack", "datadog", "new relic", "splunk", "nagios", "zabbix",
    ],
    "datascience": [
        "machine learning", "deep learning", "artificial intelligence", "data analysis",
        "data science", "pandas", "numpy", "scipy", "scikit-learn", "tensorflow", "pytorch",
        "keras", "opencv", "nltk", "spacy", "matplotlib", "seaborn", "plotly", "tableau",
        "power bi", "jupyter", "apache spark", "hadoop", "kafka", "airflow",
    ],
    "mobile": [
        "ios development", "android development", "react native", "flutter", "xamarin",
        "ionic", "cordova", "phonegap", "swift", "objective-c", "kotlin", "java android",
    ],
    "design": [
        "ui design", "ux design", "user experience", "user interface", "figma", "sketch",
        "adobe xd", "photoshop", "illustrator", "indesign", "after effects", "premiere pro",
        "blender", "3d modeling", "animation", "prototyping", "wireframing", "user research",
    ],
    "management": [
        "project management", "agile", "scrum", "kanban", "lean", "six sigma", "pmp",
        "product management", "business analysis", "requirements gathering", "stakeholder management",
        "risk management", "change management", "team leadership", "strategic planning",
    ],
    "soft": [
        "leadership", "communication", "teamwork", "problem solving", "critical thinking",
        "creativity", "adaptability", "time management", "conflict resolution", "negotiation",
        "presentation skills", "public speaking", "emotional intelligence", "mentoring",
        "coaching", "decision making", "analytical thinking", "attention to detail",
    ],
    "security": [
        "cybersecurity", "information security", "network security", "application security",
        "penetration testing", "ethical hacking", "vulnerability assessment", "incident response",
        "forensics", "compliance", "risk assessment", "security architecture", "cryptography",
    ],
    "networking": [
        "networking", "tcp/ip", "dns", "dhcp", "vpn", "firewall", "load balancing",
        "routing", "switching", "wireless", "network troubleshooting", "network design",
        "network monitoring", "network automation", "sdn", "network virtualization",
    ],
}


class SkillCatalog:
    """Lookup helpers over a category -> skills mapping."""

    def __init__(self, skills_by_category: Optional[Dict[str, List[str]]] = None):
        self.skills_by_category = {
            cat: [s.lower() for s in skills]
            for cat, skills in (skills_by_category or SKILLS_BY_CATEGORY).items()
        }
        # Flattened, first occurrence wins ("swift" is listed twice)
        self.all_skills: List[str] = list(
            dict.fromkeys(s for skills in self.skills_by_category.values() for s in skills)
        )
        self._known = set(self.all_skills)
        self.variations = self._build_variations(self.all_skills)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._known

    def __iter__(self):
        return iter(self.all_skills)

    def __len__(self) -> int:
        return len(self.all_skills)

    def category_of(self, skill_name: str) -> str:
        """Return the first category listing ``skill_name``, or ``"other"``."""
        key = (skill_name or "").strip().lower()
        for category, skills in self.skills_by_category.items():
            if key in skills:
                return category
        return "other"

    def canonical(self, variant: str) -> Optional[str]:
        """Map a spelling variant ("nodejs", "spring-boot") onto a catalog name."""
        key = (variant or "").strip().lower()
        return self.variations.get(key)

    @staticmethod
    def _build_variations(skills: Iterable[str]) -> Dict[str, str]:
        variations: Dict[str, str] = {}
        for skill in skills:
            variations.setdefault(skill, skill)
            if "." in skill:
                variations.setdefault(skill.replace(".", ""), skill)
            if "-" in skill:
                variations.setdefault(skill.replace("-", " "), skill)
                variations.setdefault(skill.replace("-", ""), skill)
            if " " in skill:
                variations.setdefault(re.sub(r"\s+", "", skill), skill)
        return variations


DEFAULT_CATALOG = SkillCatalog()
