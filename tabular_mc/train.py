from __future__ import annotations

import argparse
import csv
import time
from pathlib import Path
from typing import Any, Dict

import numpy as np
import yaml

from tabular_mc.algos import create_agent, list_algos, load_config
from tabular_mc.core.runner import run_agent
from tabular_mc.core.utils import set_seed
from tabular_mc.envs.make_env import list_envs, make_env

TRAIN_LOG_FIELDS = ["episode_idx", "episode_return", "episode_length", "final_weight", "tracked_value", "elapsed_sec"]


def parse_args():
    parser = argparse.ArgumentParser(description="tabular_mc 统一运行入口")
    parser.add_argument("--algo", type=str, required=True, help="算法名称，例如 mc_pred / mc_es / off_policy_v ...")
    parser.add_argument("--env-id", type=str, default="blackjack", help=f"环境：{' / '.join(list_envs())}")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="可选：yaml 配置路径；不传则默认读取 `tabular_mc/config/{algo}.yaml`（若存在）。",
    )
    parser.add_argument("--num-episodes", type=int, default=None, help="覆盖配置中的 num_episodes（可选）。")
    parser.add_argument(
        "--sample-method",
        type=str,
        default=None,
        choices=["ordinary", "weighted"],
        help="覆盖离策略预测的重要性采样方式（可选）。",
    )
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--log-every", type=int, default=1000, help="每隔多少个 episode 打印一行进度（0 关闭）。")
    parser.add_argument("--output-dir", type=str, default="runs")
    return parser.parse_args()


def save_config_snapshot(path: Path, config: Any):
    # 把这次跑的配置存一份，后面复现实验用
    if hasattr(config, "to_dict"):
        cfg_dict = config.to_dict()
    else:
        cfg_dict = dict(getattr(config, "__dict__", {}))
    path.write_text(yaml.safe_dump(cfg_dict, sort_keys=False), encoding="utf-8")


def _init_csv(path: Path, fieldnames: list[str]):
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()


class EpisodeLogger:
    # 每个 episode 往 csv 里追加一行，隔一段打印一次
    def __init__(self, path: Path, agent, history_state_id: int, log_every: int):
        self.path = path
        self.agent = agent
        self.history_state_id = history_state_id
        self.log_every = int(log_every)
        self.start_time = time.time()
        self.recent_returns: list[float] = []
        _init_csv(path, TRAIN_LOG_FIELDS)
        self._file = open(path, "a", newline="", encoding="utf-8")
        self._writer = csv.DictWriter(self._file, fieldnames=TRAIN_LOG_FIELDS)

    def __call__(self, episode_idx: int, episode, stats: Dict[str, float]):
        tracked = self.agent.tracked_value(self.history_state_id)
        elapsed_sec = float(time.time() - self.start_time)
        self._writer.writerow(
            {
                "episode_idx": int(episode_idx),
                "episode_return": float(stats["episode_return"]),
                "episode_length": int(stats["episode_length"]),
                "final_weight": float(stats["final_weight"]),
                "tracked_value": tracked,
                "elapsed_sec": elapsed_sec,
            }
        )

        self.recent_returns.append(float(stats["episode_return"]))
        if len(self.recent_returns) > 100:
            self.recent_returns.pop(0)
        if self.log_every > 0 and episode_idx % self.log_every == 0:
            ma100 = float(sum(self.recent_returns) / max(1, len(self.recent_returns)))
            print(
                f"ep={episode_idx:>8} | ma100={ma100:>7.3f} | w={stats['final_weight']:>9.3g}"
                f" | v={tracked:>8.4f} | t={elapsed_sec:>7.1f}s"
            )

    def close(self):
        self._file.close()


def main():
    args = parse_args()
    set_seed(int(args.seed))

    available_algos = list_algos()
    if args.algo not in available_algos:
        raise ValueError(f"未知算法：{args.algo}，可用算法：{available_algos}")

    config = load_config(args.algo, args.config)
    if args.num_episodes is not None:
        config.num_episodes = int(args.num_episodes)
    if args.sample_method is not None:
        config.sample_method = args.sample_method

    rng = np.random.default_rng(int(args.seed))
    env = make_env(args.env_id, rng=rng)
    agent = create_agent(args.algo, env.mdp, config, env.target_policy, env.behavior_policy, rng)
    history_index = getattr(config, "history_state_index", None)
    if history_index is None:
        history_state_id = env.mdp.state_index(env.history_state)
    else:
        history_state_id = int(history_index)
        if not 0 <= history_state_id < env.mdp.num_states:
            raise ValueError(f"history_state_index 越界：{history_state_id}（共 {env.mdp.num_states} 个状态）")
    tracked_state = env.mdp.states[history_state_id]

    run_name = f"{args.env_id}__{args.algo}__{args.seed}__{int(time.time())}"
    run_dir = Path(args.output_dir) / run_name
    run_dir.mkdir(parents=True, exist_ok=True)
    save_config_snapshot(run_dir / "config.yaml", config)

    num_episodes = int(getattr(config, "num_episodes", 0))
    print(f"run_dir={run_dir}")
    print(f"algo={args.algo}, env={args.env_id}, num_episodes={num_episodes}, tracked_state={tracked_state!r}")

    logger = EpisodeLogger(run_dir / "train_log.csv", agent, history_state_id, args.log_every)
    try:
        result = run_agent(agent, num_episodes, history_state_id, on_episode=logger)
    finally:
        logger.close()

    final_path = run_dir / "final.npz"
    arrays = {"values": result.values, "counts": result.counts, "value_history": result.value_history}
    if result.policy is not None:
        arrays["policy"] = result.policy
    np.savez_compressed(final_path, **arrays)
    print(f"final estimate at tracked state: {agent.tracked_value(history_state_id):.6f}")
    print(f"saved: {final_path}")


if __name__ == "__main__":
    main()
