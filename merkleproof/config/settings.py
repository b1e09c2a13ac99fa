"""
Configuration management for MerkleProof.

Loads YAML configuration from file with sensible defaults and validation.
Supports environment variable substitution using ${ENV_VAR} syntax.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from merkleproof.exceptions import InvalidConfigurationError, UnsupportedHashAlgorithmError
from merkleproof.logging_config import get_logger
from merkleproof.merkle.hashing import DEFAULT_HASH_ALGORITHM, HASH_FUNCTIONS, get_hash_function
from merkleproof.merkle.proof import ProofEngine
from merkleproof.merkle.tree import OddNodePolicy, TreeBuilder

logger = get_logger(__name__)


def _expand_env_vars(value: Any) -> Any:
    """
    Recursively expand environment variables in configuration values.

    Supports ${ENV_VAR} syntax with optional default values: ${ENV_VAR:default}

    Args:
        value: Configuration value (string, dict, list, or other)

    Returns:
        Value with environment variables expanded

    Examples:
        "${MERKLE_HASH}" -> value of MERKLE_HASH env var
        "${MERKLE_HASH:sha256}" -> value of MERKLE_HASH or "sha256" if not set
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

        def replace_env_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


def parse_bool(value: Any) -> bool:
    """Interpret booleans that may arrive as strings after env expansion."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off", ""):
            return False
        raise InvalidConfigurationError(f"Expected a boolean, got '{value}'")
    return bool(value)


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidConfigurationError(f"{name} must be an integer, got '{value}'")


@dataclass
class MerkleConfig:
    """Merkle tree configuration."""

    hash_algorithm: str = DEFAULT_HASH_ALGORITHM  # "keccak256" or "sha256"
    sort_pairs: bool = True
    odd_node_policy: str = OddNodePolicy.DUPLICATE.value  # "duplicate" or "carry"
    parallel_threshold: int = 0  # 0 disables thread-pool hashing

    def create_builder(self) -> TreeBuilder:
        """Create a TreeBuilder from this configuration."""
        return TreeBuilder(
            hash_function=get_hash_function(self.hash_algorithm),
            sort_pairs=self.sort_pairs,
            odd_node_policy=OddNodePolicy(self.odd_node_policy),
            parallel_threshold=self.parallel_threshold,
        )

    def create_engine(self) -> ProofEngine:
        """Create a ProofEngine from this configuration."""
        return ProofEngine(
            hash_function=get_hash_function(self.hash_algorithm),
            sort_pairs=self.sort_pairs,
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""
    format: str = "console"  # "console" or "json"


@dataclass
class MerkleProofConfig:
    """Main MerkleProof configuration."""

    merkle: MerkleConfig = field(default_factory=MerkleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_default_config_path() -> str:
    """Get the default configuration file path."""
    return os.path.expanduser("~/.merkleproof/config.yaml")


def get_default_config() -> MerkleProofConfig:
    """
    Get default configuration with sensible defaults.

    Returns:
        MerkleProofConfig: Default configuration object
    """
    return MerkleProofConfig(
        merkle=MerkleConfig(),
        logging=LoggingConfig(),
    )


def load_config(config_path: Optional[str] = None) -> MerkleProofConfig:
    """
    Load configuration from YAML file with validation.

    If config file is not found, returns default configuration.
    If config file is malformed or invalid, raises InvalidConfigurationError.

    Args:
        config_path: Path to configuration file. If None, uses default path.

    Returns:
        MerkleProofConfig: Loaded and validated configuration

    Raises:
        InvalidConfigurationError: If configuration is invalid or malformed
    """
    if config_path is None:
        config_path = get_default_config_path()

    config_path = os.path.expanduser(config_path)

    if not os.path.exists(config_path):
        logger.debug(f"Configuration file not found at {config_path}, using defaults")
        return get_default_config()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
        logger.debug(f"Loaded configuration from {config_path}")
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration file '{config_path}': {e}")
        raise InvalidConfigurationError(
            f"Failed to parse YAML configuration file '{config_path}': {e}"
        )
    except OSError as e:
        logger.error(f"Failed to read configuration file '{config_path}': {e}")
        raise InvalidConfigurationError(
            f"Failed to read configuration file '{config_path}': {e}"
        )

    if config_data is None:
        logger.debug(f"Configuration file {config_path} is empty, using defaults")
        return get_default_config()

    if not isinstance(config_data, dict):
        raise InvalidConfigurationError(
            f"Invalid configuration in '{config_path}': top level must be a mapping"
        )

    config_data = _expand_env_vars(config_data)

    try:
        config = _build_config_from_dict(config_data)
        _validate_config(config)
    except InvalidConfigurationError as e:
        logger.error(f"Invalid configuration in '{config_path}': {e}")
        raise InvalidConfigurationError(f"Invalid configuration in '{config_path}': {e}")

    logger.debug(f"Successfully loaded and validated configuration from {config_path}")
    return config


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config_data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise InvalidConfigurationError(
            f"'{name}' section must be a mapping, got {type(section).__name__}"
        )
    return section


def _build_config_from_dict(config_data: Dict[str, Any]) -> MerkleProofConfig:
    """
    Build MerkleProofConfig from dictionary loaded from YAML.

    Merges user configuration with defaults.

    Args:
        config_data: Dictionary loaded from YAML file

    Returns:
        MerkleProofConfig: Configuration object
    """
    default_config = get_default_config()

    merkle_data = _section(config_data, 'merkle')
    merkle = MerkleConfig(
        hash_algorithm=str(merkle_data.get('hash_algorithm', default_config.merkle.hash_algorithm)),
        sort_pairs=parse_bool(merkle_data.get('sort_pairs', default_config.merkle.sort_pairs)),
        odd_node_policy=str(merkle_data.get('odd_node_policy', default_config.merkle.odd_node_policy)),
        parallel_threshold=_as_int(
            merkle_data.get('parallel_threshold', default_config.merkle.parallel_threshold),
            'parallel_threshold',
        ),
    )

    logging_data = _section(config_data, 'logging')
    logging = LoggingConfig(
        level=str(logging_data.get('level', default_config.logging.level)),
        file=os.path.expanduser(str(logging_data.get('file', default_config.logging.file))),
        format=str(logging_data.get('format', default_config.logging.format)),
    )

    return MerkleProofConfig(merkle=merkle, logging=logging)


def _validate_config(config: MerkleProofConfig) -> None:
    """
    Validate configuration values.

    Args:
        config: Configuration to validate

    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    try:
        get_hash_function(config.merkle.hash_algorithm)
    except UnsupportedHashAlgorithmError:
        raise InvalidConfigurationError(
            f"hash_algorithm must be one of {sorted(HASH_FUNCTIONS)}, "
            f"got '{config.merkle.hash_algorithm}'"
        )

    valid_policies = [policy.value for policy in OddNodePolicy]
    if config.merkle.odd_node_policy not in valid_policies:
        raise InvalidConfigurationError(
            f"odd_node_policy must be one of {valid_policies}, "
            f"got '{config.merkle.odd_node_policy}'"
        )

    if config.merkle.parallel_threshold < 0:
        raise InvalidConfigurationError(
            f"parallel_threshold must be non-negative, got {config.merkle.parallel_threshold}"
        )

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.logging.level.upper() not in valid_log_levels:
        raise InvalidConfigurationError(
            f"logging level must be one of {valid_log_levels}, "
            f"got '{config.logging.level}'"
        )

    valid_formats = ["console", "json"]
    if config.logging.format not in valid_formats:
        raise InvalidConfigurationError(
            f"logging format must be one of {valid_formats}, "
            f"got '{config.logging.format}'"
        )
