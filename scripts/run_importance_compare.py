#!/usr/bin/env python
# -*- coding: utf-8 -*-

# 这个脚本就是：同一个离策略预测问题，ordinary / weighted 各跑一堆独立副本，
# 在同一批检查点上汇总估计值的均值、方差、MSE，写成 csv + summary.json。

from __future__ import annotations

import argparse
import csv
import json
import time
from functools import partial
from pathlib import Path
from typing import Any

import numpy as np

from tabular_mc.algos.drivers import estimate_state_returns, off_policy_state_prediction
from tabular_mc.core.replicas import history_variance, merge_replicas, run_replicas
from tabular_mc.core.utils import log_spaced_checkpoints_upto
from tabular_mc.envs.make_env import make_env

# Figure 5.3 那个状态的真值（书上给的数）
BLACKJACK_TRUE_VALUE = -0.27726
ONE_STATE_TRUE_VALUE = 1.0

COMPARE_FIELDS = ["method", "episode_idx", "mean", "var", "mse"]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument("--env-id", type=str, default="blackjack", choices=["blackjack", "one_state"])
    parser.add_argument("--num-episodes", type=int, default=10_000)
    parser.add_argument("--num-replicas", type=int, default=100)
    parser.add_argument("--methods", type=str, nargs="+", default=["ordinary", "weighted"])
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--workers", type=int, default=1, help="大于 1 时用进程池并行跑副本。")
    parser.add_argument(
        "--truth-episodes",
        type=int,
        default=0,
        help="可选：直接按目标策略跑这么多条 episode 估一个“真值”（0 表示用书上的数）。",
    )
    parser.add_argument("--output-dir", type=str, default="results")
    return parser.parse_args()


def run_one_replica(
    rng: np.random.Generator,
    env_id: str,
    method: str,
    num_episodes: int,
    checkpoints: np.ndarray,
):
    # 模块级函数，进程池里要能 pickle
    env = make_env(env_id, rng=rng)
    return off_policy_state_prediction(
        env.target_policy,
        env.behavior_policy,
        env.mdp,
        1.0,
        num_episodes,
        sample_method=method,
        fixed_start_state=env.history_state,
        sample_checkpoints=checkpoints,
        rng=rng,
    )


def reference_value(env_id: str, truth_episodes: int, seed: int) -> float:
    if truth_episodes <= 0:
        return BLACKJACK_TRUE_VALUE if env_id == "blackjack" else ONE_STATE_TRUE_VALUE
    rng = np.random.default_rng(seed)
    env = make_env(env_id, rng=rng)
    returns = estimate_state_returns(env.mdp, env.target_policy, env.history_state, truth_episodes, rng)
    return float(returns.mean())


def main() -> None:
    args = parse_args()

    repo_root = Path(__file__).resolve().parents[1]
    results_root = repo_root / args.output_dir
    results_root.mkdir(parents=True, exist_ok=True)

    checkpoints = log_spaced_checkpoints_upto(args.num_episodes)
    truth = reference_value(args.env_id, args.truth_episodes, args.seed)
    probe = make_env(args.env_id)
    state_id = probe.mdp.state_index(probe.history_state)
    print(f"env={args.env_id}, replicas={args.num_replicas}, episodes={args.num_episodes}, truth={truth:.5f}")

    csv_path = results_root / f"importance_compare__{args.env_id}.csv"
    summary: dict[str, Any] = {
        "env_id": args.env_id,
        "num_episodes": int(args.num_episodes),
        "num_replicas": int(args.num_replicas),
        "seed": int(args.seed),
        "truth": truth,
        "methods": {},
    }

    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=COMPARE_FIELDS)
        writer.writeheader()

        for method in args.methods:
            print(f"\n=== Running: method={method} ===")
            start = time.time()
            run_fn = partial(
                run_one_replica,
                env_id=args.env_id,
                method=method,
                num_episodes=args.num_episodes,
                checkpoints=checkpoints,
            )
            # 两种方法用同一个种子，副本之间的随机流一一对应
            results = run_replicas(run_fn, args.num_replicas, seed=args.seed, workers=args.workers)
            mean, var = history_variance(results)
            histories = np.stack([r.value_history for r in results], axis=0)
            mse = ((histories - truth) ** 2).mean(axis=0)

            for k, episode_idx in enumerate(checkpoints):
                writer.writerow(
                    {
                        "method": method,
                        "episode_idx": int(episode_idx),
                        "mean": float(mean[k]),
                        "var": float(var[k]),
                        "mse": float(mse[k]),
                    }
                )

            # 所有副本合并起来，相当于一次跑了 num_replicas * num_episodes 条 episode
            merged = merge_replicas(results)
            summary["methods"][method] = {
                "final_mean": float(mean[-1]),
                "final_var": float(var[-1]),
                "final_mse": float(mse[-1]),
                "merged_estimate": float(merged.values[state_id]),
                "elapsed_sec": float(time.time() - start),
            }
            print(
                f"[OK] {method}: mean={mean[-1]:.4f}, var={var[-1]:.4g}, mse={mse[-1]:.4g},"
                f" merged={merged.values[state_id]:.4f}"
            )

    summary_path = results_root / f"importance_compare__{args.env_id}.json"
    with open(summary_path, "w", encoding="utf-8") as f:
        json.dump(summary, f, ensure_ascii=False, indent=2)

    print("\n=== Done ===")
    print(f"- curves:  {csv_path}")
    print(f"- summary: {summary_path}")


if __name__ == "__main__":
    main()
