"""Config – deterministic rollout gating.

The hash is the 31-multiplier 32-bit string hash computed by the browser
client over UTF-16 code units, so server and browser agree on every
component's bucket.
"""
from __future__ import annotations

from mp_logpipe.config.settings import RolloutSettings


def stable_hash(name: str) -> int:
    """Signed 32-bit ``h = h * 31 + unit`` over the UTF-16 code units of *name*."""
    data = name.encode("utf-16-le", errors="surrogatepass")
    value = 0
    for index in range(0, len(data), 2):
        unit = data[index] | (data[index + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


def rollout_bucket(name: str) -> int:
    """Bucket in ``[0, 100)`` of *name*."""
    return abs(stable_hash(name)) % 100


def is_canary_user(user_id: str | None, rollout: RolloutSettings) -> bool:
    return user_id is not None and user_id in rollout.canary_users


def is_component_enabled(
    name: str,
    rollout: RolloutSettings,
    user_id: str | None = None,
) -> bool:
    """Decide whether *name* is inside the rollout.

    Canary users are always included.  Otherwise a non-empty
    ``enabled_components`` list decides alone; only without one is the
    percentage consulted.
    """
    if is_canary_user(user_id, rollout):
        return True
    if rollout.enabled_components:
        return name in rollout.enabled_components
    return rollout_bucket(name) < rollout.rollout_percentage


class RolloutGate:
    """:func:`is_component_enabled` bound to one :class:`RolloutSettings`."""

    def __init__(self, rollout: RolloutSettings) -> None:
        self._rollout = rollout

    @property
    def rollout(self) -> RolloutSettings:
        return self._rollout

    def is_enabled(self, component: str, user_id: str | None = None) -> bool:
        return is_component_enabled(component, self._rollout, user_id)

    def is_canary(self, user_id: str | None) -> bool:
        return is_canary_user(user_id, self._rollout)


__all__ = ["RolloutGate", "is_canary_user", "is_component_enabled", "rollout_bucket", "stable_hash"]
