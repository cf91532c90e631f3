"""Configuration models using Pydantic for validation."""
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator
import os

from metrics_aggregator.aggregation import LABEL_NAME_RE


class AggregatorConfig(BaseModel):
    """Root configuration model, immutable once the process has started."""
    model_config = {"frozen": True}

    bind_address: str = ":9090"
    metrics_path: str = "/metrics"
    target_url: str
    aggregate_without_labels: List[str]
    include_metrics: List[str] = Field(default_factory=list)
    add_prefix: str = ""
    add_labels: Dict[str, str] = Field(default_factory=dict)
    request_timeout_s: float = Field(default=10.0, gt=0)
    log_level: str = "INFO"

    @field_validator('target_url')
    @classmethod
    def validate_target_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"target_url must be an http(s) URL, got '{v}'")
        return v

    @field_validator('aggregate_without_labels')
    @classmethod
    def validate_drop_labels(cls, v):
        """At least one label must be aggregated away."""
        v = [name.strip() for name in v if name.strip()]
        if not v:
            raise ValueError("At least one label to aggregate without must be given")
        return v

    @field_validator('metrics_path')
    @classmethod
    def validate_metrics_path(cls, v):
        if not v.startswith("/"):
            raise ValueError(f"metrics_path must start with '/', got '{v}'")
        return v

    @field_validator('bind_address')
    @classmethod
    def validate_bind_address(cls, v):
        split_bind_address(v)
        return v

    @field_validator('add_labels', mode='before')
    @classmethod
    def parse_add_labels(cls, v):
        """Accept a mapping or a list of key=value pairs."""
        if v is None:
            return {}
        if isinstance(v, str):
            v = [pair for pair in v.split(',') if pair]
        if isinstance(v, (list, tuple)):
            labels = {}
            for pair in v:
                kv = pair.split('=')
                if len(kv) != 2 or not kv[0]:
                    raise ValueError(f"Extra label must be a key=value pair, got '{pair}'")
                labels[kv[0].strip()] = kv[1].strip()
            return labels
        return v

    @field_validator('add_labels')
    @classmethod
    def validate_add_labels(cls, v):
        for name in v:
            if not LABEL_NAME_RE.match(name):
                raise ValueError(f"Invalid extra label name '{name}'")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @property
    def host(self) -> str:
        return split_bind_address(self.bind_address)[0]

    @property
    def port(self) -> int:
        return split_bind_address(self.bind_address)[1]


def split_bind_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` into its parts; an empty host binds all interfaces."""
    host, sep, port = address.rpartition(':')
    if not sep:
        raise ValueError(f"bind address must be host:port, got '{address}'")

    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in bind address '{address}'")

    if not 0 < port_number < 65536:
        raise ValueError(f"Port out of range in bind address '{address}'")

    host = host.strip('[]') or "0.0.0.0"
    return host, port_number


def load_config(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> AggregatorConfig:
    """
    Load and validate configuration.

    Values come from the optional YAML file, then the ``LOG_LEVEL``
    environment variable, then ``overrides`` (command line flags). Override
    values of ``None`` or empty lists are ignored.
    """
    import yaml

    raw_config: Dict[str, Any] = {}

    if config_path:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")

    if env_log_level := os.getenv('LOG_LEVEL'):
        raw_config['log_level'] = env_log_level

    for key, value in (overrides or {}).items():
        if value is None or value == []:
            continue
        raw_config[key] = value

    try:
        return AggregatorConfig(**raw_config)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")
