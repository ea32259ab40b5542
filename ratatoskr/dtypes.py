"""Local dtype policy for Ratatoskr contracts."""

import jax.numpy as jnp

# Keep value/index/status contracts consistent across ratatoskr state.
INDEX_DTYPE = jnp.int64

# Reserved node value meaning "no node / empty slot".
SENTINEL = 0

# Marker for value_to_index entries that were never assigned.
UNSET_INDEX = -1


def as_index(x):
    """Convert a scalar/array to ratatoskr index dtype."""
    return jnp.asarray(x, dtype=INDEX_DTYPE)


def value_mask(value_width: int) -> int:
    """Return the bit mask selecting one value from a channel word."""
    return (1 << int(value_width)) - 1


__all__ = ["INDEX_DTYPE", "SENTINEL", "UNSET_INDEX", "as_index", "value_mask"]
