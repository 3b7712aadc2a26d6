"""One-time code library public API.

Provides code generation, challenge expiry arithmetic, message templates,
and the sliding-window rate limiter.
"""

from ballot_api.lib.otc.codes import (
    CODE_LENGTH,
    OtcChallenge,
    OtcPurpose,
    generate_code,
    is_well_formed,
    render_message,
)
from ballot_api.lib.otc.rate_limit import SlidingWindowRateLimiter

__all__ = [
    "CODE_LENGTH",
    "OtcChallenge",
    "OtcPurpose",
    "SlidingWindowRateLimiter",
    "generate_code",
    "is_well_formed",
    "render_message",
]
