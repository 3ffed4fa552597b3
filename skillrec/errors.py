from __future__ import annotations

"""
Error kinds raised or logged by the recommender core.

Only :class:`NotFound` and :class:`UpstreamUnavailable` ever reach a
caller.  The two partial-failure kinds are built at the isolation points
(one extraction pass, one scorer) so log records carry a stable name;
they are never raised out of the core.  Too little data for
collaborative filtering is not an error at all: that scorer returns an
empty list.
"""


class SkillRecError(Exception):
    """Base class for recommender errors."""


class NotFound(SkillRecError):
    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} {key!r} not found")
        self.kind = kind
        self.key = key


class UpstreamUnavailable(SkillRecError):
    """A store or data provider could not be reached, or every scorer failed."""


class _PartialFailure(SkillRecError):
    label = "partial failure"

    def __init__(self, component: str, cause: BaseException):
        super().__init__(f"{self.label} in {component}: {cause!r}")
        self.component = component
        self.cause = cause


class ExtractionPartialFailure(_PartialFailure):
    label = "ExtractionPartialFailure"


class ScorerPartialFailure(_PartialFailure):
    label = "ScorerPartialFailure"
