"""Configuration management for repohealth."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union
import yaml

from repohealth.types import Category


class ConfigurationError(ValueError):
    """Raised when the configuration would produce a skewed or undefined score."""


def resolve_category(key) -> Category:
    """Resolve a category or category name, failing fast on unknown names."""
    if isinstance(key, Category):
        return key
    try:
        return Category.from_str(str(key))
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def _coerce(section: str, name: str, value, kind):
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{section}.{name} must be {kind.__name__}, got {value!r}") from e


@dataclass(frozen=True)
class CategoryWeights:
    """Weights of each category in the overall score. Must sum to 100."""
    security: int = 30
    documentation: int = 25
    cicd: int = 25
    branch_protection: int = 20

    def __post_init__(self):
        values = self.as_mapping()
        negative = [c.value for c, w in values.items() if w < 0]
        if negative:
            raise ConfigurationError(f"Category weights must be >= 0: {', '.join(negative)}")
        total = sum(values.values())
        if total != 100:
            raise ConfigurationError(f"Category weights must sum to 100, got {total}")

    def as_mapping(self) -> Dict[Category, int]:
        return {
            Category.SECURITY: self.security,
            Category.DOCUMENTATION: self.documentation,
            Category.CICD: self.cicd,
            Category.BRANCH_PROTECTION: self.branch_protection,
        }

    def weight_of(self, category: Category) -> int:
        try:
            return self.as_mapping()[category]
        except KeyError:
            raise ConfigurationError(f"No weight configured for category {category!r}") from None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'CategoryWeights':
        """Create weights from a mapping keyed by category name.

        Raises:
            ConfigurationError: If a key does not name a known category or a
                weight is not an integer
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"weights must be a mapping, got {type(data).__name__}")
        kwargs = {}
        for key, value in data.items():
            category = resolve_category(key)
            kwargs[category.value] = _coerce("weights", category.value, value, int)
        return cls(**kwargs)


@dataclass
class TargetConfig:
    """What to audit."""
    path: str = "."  # local checkout, always used for fallback
    owner: Optional[str] = None  # remote owner, enables GitHub mode
    repo: Optional[str] = None
    token_env: str = "GITHUB_TOKEN"

    @property
    def has_remote(self) -> bool:
        return bool(self.owner and self.repo)


@dataclass
class RemoteConfig:
    """GitHub REST client settings."""
    api_base: str = "https://api.github.com"
    timeout: float = 15.0
    retries: int = 3
    backoff_factor: float = 1.2
    commit_depth: int = 10  # recent commits scanned for leaked secrets

    def __post_init__(self):
        self.timeout = _coerce("remote", "timeout", self.timeout, float)
        self.retries = _coerce("remote", "retries", self.retries, int)
        self.backoff_factor = _coerce("remote", "backoff_factor", self.backoff_factor, float)
        self.commit_depth = _coerce("remote", "commit_depth", self.commit_depth, int)


@dataclass
class RankingConfig:
    """Recommendation ranking settings."""
    threshold: int = 70  # categories below this get a recommendation
    limit: int = 5

    def __post_init__(self):
        self.threshold = _coerce("ranking", "threshold", self.threshold, int)
        self.limit = _coerce("ranking", "limit", self.limit, int)
        if self.limit < 0:
            raise ConfigurationError("ranking.limit must be >= 0")


@dataclass
class HealthConfig:
    """Top-level repohealth configuration."""
    target: TargetConfig = field(default_factory=TargetConfig)
    weights: CategoryWeights = field(default_factory=CategoryWeights)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'HealthConfig':
        """Load configuration from a YAML file."""
        with open(path, 'r') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"{path} is not valid YAML: {e}") from e
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> 'HealthConfig':
        """Create a HealthConfig from a dictionary.

        Raises:
            ConfigurationError: If the data or one of its sections is not a
                mapping, or a value cannot be used
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"configuration must be a mapping, got {type(data).__name__}")

        def create_instance(klass, d, section):
            if d is None:
                return klass()
            if not isinstance(d, dict):
                raise ConfigurationError(f"{section} must be a mapping, got {type(d).__name__}")
            fields = {f.name for f in dataclasses.fields(klass) if f.init}
            filtered = {k: v for k, v in d.items() if k in fields}
            return klass(**filtered)

        return cls(
            target=create_instance(TargetConfig, data.get('target'), 'target'),
            weights=CategoryWeights.from_dict(data.get('weights')),
            ranking=create_instance(RankingConfig, data.get('ranking'), 'ranking'),
            remote=create_instance(RemoteConfig, data.get('remote'), 'remote'),
        )

    def to_dict(self) -> dict:
        """Convert the configuration to a dictionary."""
        def asdict(obj):
            if hasattr(obj, '__dataclass_fields__'):
                return {k: asdict(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, (list, tuple)):
                return [asdict(x) for x in obj]
            elif isinstance(obj, dict):
                return {k: asdict(v) for k, v in obj.items()}
            else:
                return obj

        return asdict(self)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save the configuration to a YAML file."""
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


# Default configuration
default_config = HealthConfig()

def get_default_config() -> HealthConfig:
    """Get a deep copy of the default configuration."""
    import copy
    return copy.deepcopy(default_config)

# Import dataclasses after all classes are defined
import dataclasses
