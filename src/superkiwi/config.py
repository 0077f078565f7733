"""
Configuration System for the SuperKiwi biometric pipeline
Type-safe configuration using dataclasses with YAML backend
"""

from dataclasses import dataclass, field
from pathlib import Path
import typing
from typing import Optional
import yaml


class ConfigError(ValueError):
    """Raised when a configuration value is unusable"""


@dataclass
class RPPGConfig:
    buffer_size: int = 300
    min_heart_rate: float = 45.0
    max_heart_rate: float = 180.0
    ready_ratio: float = 0.8
    quality_scale: float = 0.5


@dataclass
class HRVConfig:
    min_intervals: int = 20
    max_intervals: int = 300
    max_interval_ms: float = 3000.0


@dataclass
class BlinkConfig:
    threshold: float = 0.21
    debounce_ms: float = 150.0
    window_ms: float = 60000.0


@dataclass
class FocusConfig:
    window_ms: float = 60000.0
    optimal_blink_rate: float = 17.5
    blink_tolerance: float = 5.0
    face_weight: float = 0.4
    gaze_weight: float = 0.4
    blink_weight: float = 0.2
    high_threshold: float = 0.7
    medium_threshold: float = 0.3


@dataclass
class FileLoggingConfig:
    enabled: bool = False
    directory: str = "logs"
    max_size_mb: int = 5
    backup_count: int = 3


@dataclass
class ConsoleLoggingConfig:
    enabled: bool = True


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: FileLoggingConfig = field(default_factory=FileLoggingConfig)
    console: ConsoleLoggingConfig = field(default_factory=ConsoleLoggingConfig)


# Flat option names accepted by Config.from_options
_OPTION_PATHS = {
    "fps": ("fps",),
    "debug": ("debug",),
    "rppg_buffer_size": ("rppg", "buffer_size"),
    "min_heart_rate": ("rppg", "min_heart_rate"),
    "max_heart_rate": ("rppg", "max_heart_rate"),
    "blink_threshold": ("blink", "threshold"),
}


@dataclass
class Config:
    """Main configuration container"""

    fps: int = 30
    debug: bool = False
    rppg: RPPGConfig = field(default_factory=RPPGConfig)
    hrv: HRVConfig = field(default_factory=HRVConfig)
    blink: BlinkConfig = field(default_factory=BlinkConfig)
    focus: FocusConfig = field(default_factory=FocusConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_options(cls, **options) -> "Config":
        """
        Build a configuration from the flat option names

        Args:
            **options: fps, rppg_buffer_size, min_heart_rate, max_heart_rate,
                blink_threshold, debug

        Returns:
            Validated Config
        """
        config = cls()
        for name, value in options.items():
            if name not in _OPTION_PATHS:
                raise ConfigError(f"Unknown option: {name}")

            *parents, attr = _OPTION_PATHS[name]
            target = config
            for parent in parents:
                target = getattr(target, parent)
            setattr(target, attr, value)

        return config.validate()

    @classmethod
    def from_yaml(cls, yaml_path: str = "superkiwi.yaml") -> "Config":
        """Load configuration from YAML file"""
        path = Path(yaml_path)
        if not path.exists():
            # Return default config if file doesn't exist
            return cls()

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data).validate()

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Recursively convert dict to Config dataclass"""

        def convert_value(value, target_type):
            # Handle Optional types
            if typing.get_origin(target_type) is typing.Union:
                args = [arg for arg in typing.get_args(target_type) if arg is not type(None)]
                if args:
                    target_type = args[0]

            if isinstance(value, dict) and hasattr(target_type, "__dataclass_fields__"):
                hints = typing.get_type_hints(target_type)
                return target_type(
                    **{
                        k: convert_value(v, hints[k])
                        for k, v in value.items()
                        if k in target_type.__dataclass_fields__
                    }
                )
            return value

        hints = typing.get_type_hints(cls)
        kwargs = {}
        for field_name in cls.__dataclass_fields__:
            if field_name in data:
                kwargs[field_name] = convert_value(data[field_name], hints[field_name])

        return cls(**kwargs)

    def to_yaml(self, yaml_path: str = "superkiwi.yaml"):
        """Save configuration to YAML file"""
        path = Path(yaml_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict:
        """Convert dataclass to dict recursively"""

        def convert_value(value):
            if hasattr(value, "__dataclass_fields__"):
                return {
                    k: convert_value(getattr(value, k))
                    for k in value.__dataclass_fields__
                }
            return value

        return {
            field_name: convert_value(getattr(self, field_name))
            for field_name in self.__dataclass_fields__
        }

    def validate(self) -> "Config":
        """
        Check every value that the analyzers depend on

        Returns:
            self, so calls can be chained

        Raises:
            ConfigError: on the first invalid value
        """
        if self.fps <= 0:
            raise ConfigError(f"fps must be positive, got {self.fps}")

        rppg = self.rppg
        if rppg.buffer_size < 2:
            raise ConfigError(f"rppg.buffer_size must be >= 2, got {rppg.buffer_size}")
        if not 0 < rppg.min_heart_rate < rppg.max_heart_rate:
            raise ConfigError(
                f"heart rate band must satisfy 0 < min < max, got "
                f"{rppg.min_heart_rate}-{rppg.max_heart_rate}"
            )
        if rppg.max_heart_rate / 60.0 >= self.fps / 2.0:
            raise ConfigError(
                f"max_heart_rate {rppg.max_heart_rate} BPM is above the Nyquist "
                f"limit for {self.fps} fps"
            )
        if not 0 < rppg.ready_ratio <= 1:
            raise ConfigError(f"rppg.ready_ratio must be in (0, 1], got {rppg.ready_ratio}")
        if rppg.quality_scale <= 0:
            raise ConfigError(f"rppg.quality_scale must be positive, got {rppg.quality_scale}")

        hrv = self.hrv
        if hrv.min_intervals < 2:
            raise ConfigError(f"hrv.min_intervals must be >= 2, got {hrv.min_intervals}")
        if hrv.max_intervals < hrv.min_intervals:
            raise ConfigError("hrv.max_intervals must be >= hrv.min_intervals")
        if hrv.max_interval_ms <= 0:
            raise ConfigError(f"hrv.max_interval_ms must be positive, got {hrv.max_interval_ms}")

        blink = self.blink
        if blink.threshold <= 0:
            raise ConfigError(f"blink.threshold must be positive, got {blink.threshold}")
        if blink.debounce_ms < 0:
            raise ConfigError(f"blink.debounce_ms must be >= 0, got {blink.debounce_ms}")
        if blink.window_ms <= 0:
            raise ConfigError(f"blink.window_ms must be positive, got {blink.window_ms}")

        focus = self.focus
        if focus.window_ms <= 0:
            raise ConfigError(f"focus.window_ms must be positive, got {focus.window_ms}")
        if focus.optimal_blink_rate <= 0 or focus.blink_tolerance < 0:
            raise ConfigError("focus blink rate targets must be positive")
        if min(focus.face_weight, focus.gaze_weight, focus.blink_weight) < 0:
            raise ConfigError("focus weights must be non-negative")
        if not 0 <= focus.medium_threshold <= focus.high_threshold <= 1:
            raise ConfigError(
                "focus thresholds must satisfy 0 <= medium <= high <= 1"
            )

        return self


def load_config(yaml_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file, or defaults when no path is given"""
    if yaml_path is None:
        return Config()
    return Config.from_yaml(yaml_path)
