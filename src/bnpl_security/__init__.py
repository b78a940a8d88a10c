"""Strong Customer Authentication and request security for BNPL checkout.

Provides the SCA orchestrator (policy, exemptions, challenges, tokens) and the
request security middleware (size, rate limit, signature, heuristics).
"""

from .__version__ import __version__

__all__ = ["__version__"]
