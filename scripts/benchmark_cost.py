#!/usr/bin/env python3
"""
Task-space Pose Cost Benchmark.

Times a TaskspacePoseTerm loaded from a YAML configuration in three modes:
plain NumPy evaluation, jitted JAX evaluation and jitted JAX gradient.
Optimizers call the cost many times per iteration, so the per-call
latency of each mode is what matters.

Usage:
    python scripts/benchmark_cost.py robot.urdf costs.yaml hand_pose \
        --ee-links hand --samples 1000
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, List

# Add the repo root to path for imports
REPO_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(REPO_ROOT))

import jax
import jax.numpy as jnp
import numpy as np

from taskcost import RobotModel, TaskspacePoseTerm
from taskcost.costs.state import expected_state_dim


@dataclass
class BenchmarkResult:
    """Container for benchmark results."""
    name: str
    first_call_ms: float
    mean_us: float
    p95_us: float
    calls_per_second: float


def print_banner(title: str) -> None:
    """Print a styled section banner."""
    width = 70
    print(f"\n{'='*width}")
    print(f"  {title}")
    print(f"{'='*width}\n")


def print_result_table(results: List[BenchmarkResult]) -> None:
    """Print results as a table, one row per mode."""
    print(f"{'Mode':<22} | {'First (ms)':>10} | {'Mean (us)':>10} | {'P95 (us)':>10} | {'Calls/s':>10}")
    print(f"{'─'*74}")
    for r in results:
        print(f"{r.name:<22} | {r.first_call_ms:>10.2f} | {r.mean_us:>10.1f} | "
              f"{r.p95_us:>10.1f} | {r.calls_per_second:>10.0f}")


def time_calls(name: str, fn: Callable, states: np.ndarray) -> BenchmarkResult:
    """Time `fn` on every state; the first call (tracing/JIT) is reported apart."""
    start = time.perf_counter()
    jax.block_until_ready(fn(states[0]))
    first_call_ms = (time.perf_counter() - start) * 1000

    times = []
    for x in states[1:]:
        start = time.perf_counter()
        jax.block_until_ready(fn(x))
        times.append((time.perf_counter() - start) * 1e6)
    times = np.array(times)

    return BenchmarkResult(
        name=name,
        first_call_ms=first_call_ms,
        mean_us=float(np.mean(times)),
        p95_us=float(np.percentile(times, 95)),
        calls_per_second=1e6 / float(np.mean(times)),
    )


def main():
    parser = argparse.ArgumentParser(description="Benchmark a task-space pose cost term")
    parser.add_argument('urdf', help='Path to the robot URDF')
    parser.add_argument('config', help='YAML file with the term section')
    parser.add_argument('term', help='Name of the term section')
    parser.add_argument('--ee-links', nargs='+', default=None,
                        help='End-effector links, indexed by eeId (default: URDF leaf)')
    parser.add_argument('--floating-base', action='store_true',
                        help='Prefix the state with a floating-base pose')
    parser.add_argument('--quaternion-base', action='store_true',
                        help='Encode the floating-base orientation as a quaternion')
    parser.add_argument('--samples', type=int, default=1000, help='Number of random states')
    parser.add_argument('--seed', type=int, default=0)
    parser.add_argument('--verbose', action='store_true', help='Log the loaded parameters')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='[%(levelname)s] %(name)s: %(message)s')

    factory = partial(RobotModel, args.urdf, end_effector_links=args.ee_links)
    robot = factory()
    state_dim = expected_state_dim(robot.num_joints, args.floating_base)
    if args.floating_base and args.quaternion_base:
        state_dim += 1
    control_dim = robot.num_joints

    term = TaskspacePoseTerm.from_config(
        factory, args.config, args.term, state_dim, control_dim,
        args.floating_base, verbose=args.verbose)

    print_banner(f"Benchmarking {term!r}")
    print(f"Robot: {robot}")

    rng = np.random.default_rng(args.seed)
    states = rng.uniform(-1.0, 1.0, size=(args.samples, state_dim))
    u = np.zeros(control_dim)

    plain = partial(term.evaluate, u=u, t=0.0)
    jitted = jax.jit(lambda x: term.evaluate_differentiable(x, u, 0.0))
    grad = jax.jit(jax.grad(lambda x: term.evaluate_differentiable(x, u, 0.0)))

    results = [
        time_calls("NumPy evaluate", plain, states),
        time_calls("JAX jit evaluate", lambda x: jitted(jnp.asarray(x)), states),
        time_calls("JAX jit gradient", lambda x: grad(jnp.asarray(x)), states),
    ]
    print_result_table(results)

    # Both scalar paths must agree on the value
    x = states[0]
    diff = abs(term.evaluate(x, u, 0.0) - float(jitted(jnp.asarray(x))))
    print(f"\n|NumPy - JAX| on first sample: {diff:.3e}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
