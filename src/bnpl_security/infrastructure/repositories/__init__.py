"""Challenge store and subject profile implementations."""

from .memory_challenge_store import MemoryChallengeStore
from .redis_challenge_store import RedisChallengeStore
from .memory_subject_profiles import InMemorySubjectProfileSource, SubjectProfile

__all__ = [
    "MemoryChallengeStore",
    "RedisChallengeStore",
    "InMemorySubjectProfileSource",
    "SubjectProfile",
]
