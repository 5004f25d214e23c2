from tabular_mc.algos.drivers import (
    estimate_state_returns,
    monte_carlo_epsilon_soft,
    monte_carlo_es,
    monte_carlo_prediction,
    off_policy_action_prediction,
    off_policy_control,
    off_policy_state_prediction,
)
from tabular_mc.algos.factory import create_agent, get_config_class, list_algos, load_config

__all__ = [
    "create_agent",
    "estimate_state_returns",
    "get_config_class",
    "list_algos",
    "load_config",
    "monte_carlo_epsilon_soft",
    "monte_carlo_es",
    "monte_carlo_prediction",
    "off_policy_action_prediction",
    "off_policy_control",
    "off_policy_state_prediction",
]
