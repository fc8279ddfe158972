"""Agreement estimate for a batch of responses.

Agreement is the mean self-reported confidence of the batch. It is a numeric
proxy, not a measure of whether the answers say the same thing.
"""

from collections.abc import Sequence

from alliance.models import ModelResponse


def estimate_agreement(responses: Sequence[ModelResponse]) -> float:
    """Return agreement in [0, 1]. Zero or one response counts as full agreement."""
    if len(responses) <= 1:
        return 1.0
    return sum(r.confidence for r in responses) / len(responses)
