"""
Layered configuration for ReLaXed.

Built-in defaults are merged with an optional `relaxed.yaml` next to the
master document, then with the file named by RELAXED_CONFIG. Later layers
override earlier ones.

Examples:
    >>> config = load_config(Path("docs"))
    >>> config.watch.stability_threshold_ms
    50
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException
from yaml import YAMLError

from relaxed.contexts.orchestration.exceptions import ConfigurationError

load_dotenv()

CONFIG_FILENAME = "relaxed.yaml"

DEFAULTS: Dict[str, Any] = {
    "watch": {
        # Quiet period a file must stay unchanged for before it is reported
        "stability_threshold_ms": 50,
        "debounce_ms": 1600,
        "force_polling": None,
        "poll_delay_ms": 100,
    },
    "browser": {
        "headless": True,
        "extra_args": [],
    },
    "pdf": {
        "format": "A4",
        "print_background": True,
        "prefer_css_page_size": True,
        "wait_until": "networkidle",
        "timeout_ms": 30000,
    },
    "libraries": {
        "mermaid": "https://cdn.jsdelivr.net/npm/mermaid@10.9.1/dist/mermaid.min.js",
        "chartjs": "https://cdn.jsdelivr.net/npm/chart.js@4.4.3/dist/chart.umd.min.js",
        "raphael": "https://cdn.jsdelivr.net/npm/raphael@2.3.0/raphael.min.js",
        "flowchart": "https://cdn.jsdelivr.net/npm/flowchart.js@1.17.1/release/flowchart.min.js",
        "vega": "https://cdn.jsdelivr.net/npm/vega@5.28.0/build/vega.min.js",
        "vega_lite": "https://cdn.jsdelivr.net/npm/vega-lite@5.18.1/build/vega-lite.min.js",
    },
    "logging": {
        "level": os.getenv("RELAXED_LOG_LEVEL", "INFO"),
        "log_dir": os.getenv("RELAXED_LOGS_PATH"),
    },
    "events": {
        "file": os.getenv("RELAXED_EVENTS_FILE"),
    },
}


def _load_layer(config_path: Path) -> DictConfig:
    try:
        return OmegaConf.load(config_path)
    except (OSError, YAMLError, OmegaConfBaseException) as e:
        raise ConfigurationError(f"Could not read config file ({e})", config_path) from e


def load_config(input_dir: Optional[Path] = None, config_path: Optional[Path] = None) -> DictConfig:
    """
    Load the effective configuration for a run.

    Args:
        input_dir: Directory of the master document; its relaxed.yaml is merged if present
        config_path: Explicit config file (defaults to the RELAXED_CONFIG env variable)

    Returns:
        Merged DictConfig with interpolations resolved

    Raises:
        ConfigurationError: If a config file exists but cannot be parsed
    """
    layers = [OmegaConf.create(DEFAULTS)]

    if input_dir is not None:
        local_config = Path(input_dir) / CONFIG_FILENAME
        if local_config.is_file():
            layers.append(_load_layer(local_config))

    if config_path is None and os.getenv("RELAXED_CONFIG"):
        config_path = Path(os.environ["RELAXED_CONFIG"])
    if config_path is not None:
        if not Path(config_path).is_file():
            raise ConfigurationError("Config file not found", config_path)
        layers.append(_load_layer(Path(config_path)))

    config = OmegaConf.merge(*layers)
    OmegaConf.resolve(config)
    return config
