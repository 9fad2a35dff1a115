"""
Composable cost functions for task-space pose tracking.

All cost functions are designed to be:
1. Generic (take the array namespace `xp`, run on NumPy or JAX)
2. Differentiable (no branching on values, JAX-traceable)
3. Composable (return scalars that can be summed)

Usage:
    total = (
        weighted_position_cost(p, p_ref, Q_pos, xp) +
        rotation_cost(R, R_ref, q_rot, xp)
    )
"""

from typing import Any

import jax.numpy as jnp
from jax import Array


def weighted_position_cost(
    current_pos: Array,
    target_pos: Array,
    weight: Array,
    xp: Any = jnp
) -> Array:
    """
    Quadratic form of the position error, ``e^T W e``.

    Args:
        current_pos: Current end-effector position (3,).
        target_pos: Target position (3,).
        weight: Weighting matrix (3, 3).
        xp: Array namespace.

    Returns:
        Scalar cost; grows quadratically with the error.
    """
    diff = current_pos - xp.asarray(target_pos)
    return diff @ xp.asarray(weight) @ diff


def rotation_cost(
    current_rot: Array,
    target_rot: Array,
    weight: float,
    xp: Any = jnp
) -> Array:
    """
    Frobenius distance of the relative rotation from identity.

    ``R_diff = R_target^T R_current`` is the identity exactly when both
    orientations match, so ``weight * ||R_diff - I||_F`` is zero there and
    positive everywhere else. Note the norm is not squared.

    The square root is guarded so its derivative at a perfect match is 0
    instead of NaN; the value is unchanged.

    Args:
        current_rot: Current end-effector rotation (3, 3).
        target_rot: Target rotation (3, 3).
        weight: Non-negative scalar weight.
        xp: Array namespace.

    Returns:
        Scalar cost.
    """
    diff = xp.asarray(target_rot).T @ current_rot - xp.eye(3)
    sq = xp.sum(diff * diff)
    nonzero = sq > 0
    safe_sq = xp.where(nonzero, sq, 1.0)
    return weight * xp.where(nonzero, xp.sqrt(safe_sq), 0.0)
