import yaml
from pathlib import Path


def list_algos():
    # 这里写死可用算法列表
    return [
        "mc_pred",
        "mc_es",
        "mc_epsilon_soft",
        "off_policy_v",
        "off_policy_q",
        "off_policy_control",
    ]


def default_config_path(algo: str):
    # 默认配置：tabular_mc/config/{algo}.yaml（存在就读，不存在就用默认 Config）
    p = Path(__file__).resolve().parent.parent / "config" / f"{algo}.yaml"
    return p if p.exists() else None


def load_config(algo: str, config_path: str | None = None):
    # 1) 先选这个算法对应的 Config 类
    # 2) 再用 yaml 覆盖（yaml 里只写要改的字段即可）
    config_class = get_config_class(algo)

    cfg_path = Path(config_path) if config_path is not None else default_config_path(algo)
    data = {}
    if cfg_path is not None and cfg_path.exists():
        loaded = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"配置文件必须是 yaml mapping：{cfg_path}")
        data = loaded
    if hasattr(config_class, "from_dict"):
        return config_class.from_dict(data)
    return config_class(**data)


def get_config_class(algo: str):
    if algo == "mc_pred":
        from tabular_mc.algos.mc_pred.agent import MCPredictionConfig

        return MCPredictionConfig
    if algo == "mc_es":
        from tabular_mc.algos.mc_es.agent import MCESConfig

        return MCESConfig
    if algo == "mc_epsilon_soft":
        from tabular_mc.algos.mc_epsilon_soft.agent import MCEpsilonSoftConfig

        return MCEpsilonSoftConfig
    if algo == "off_policy_v":
        from tabular_mc.algos.off_policy_v.agent import OffPolicyVConfig

        return OffPolicyVConfig
    if algo == "off_policy_q":
        from tabular_mc.algos.off_policy_q.agent import OffPolicyQConfig

        return OffPolicyQConfig
    if algo == "off_policy_control":
        from tabular_mc.algos.off_policy_control.agent import OffPolicyControlConfig

        return OffPolicyControlConfig
    raise ValueError(f"未知算法：{algo}，可用算法：{list_algos()}")


def create_agent(algo: str, mdp, config, target_policy=None, behavior_policy=None, rng=None):
    # 你可以把它理解成一个“超简单工厂函数”：
    # 输入 algo 字符串，输出对应的 agent 实例
    if algo == "mc_pred":
        from tabular_mc.algos.mc_pred.agent import MCPredictionAgent

        return MCPredictionAgent(mdp, config, target_policy, behavior_policy, rng)
    if algo == "mc_es":
        from tabular_mc.algos.mc_es.agent import MCESAgent

        return MCESAgent(mdp, config, target_policy, behavior_policy, rng)
    if algo == "mc_epsilon_soft":
        from tabular_mc.algos.mc_epsilon_soft.agent import MCEpsilonSoftAgent

        return MCEpsilonSoftAgent(mdp, config, target_policy, behavior_policy, rng)
    if algo == "off_policy_v":
        from tabular_mc.algos.off_policy_v.agent import OffPolicyVAgent

        return OffPolicyVAgent(mdp, config, target_policy, behavior_policy, rng)
    if algo == "off_policy_q":
        from tabular_mc.algos.off_policy_q.agent import OffPolicyQAgent

        return OffPolicyQAgent(mdp, config, target_policy, behavior_policy, rng)
    if algo == "off_policy_control":
        from tabular_mc.algos.off_policy_control.agent import OffPolicyControlAgent

        return OffPolicyControlAgent(mdp, config, target_policy, behavior_policy, rng)
    raise ValueError(f"未知算法：{algo}，可用算法：{list_algos()}")
