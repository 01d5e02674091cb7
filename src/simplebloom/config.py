"""
Configuration management for Bloom filters.
"""
from dataclasses import asdict, dataclass
from typing import Optional
import json
import logging

import structlog

from simplebloom.filter import BloomFilter, file_filter, memory_filter, redis_filter

BACKENDS = ("memory", "file", "redis")


@dataclass
class FilterConfig:
    """Parameters needed to open a Bloom filter."""

    # Filter shape
    capacity: int = 1 << 20  # Number of bit slots (n)
    rounds: int = 5  # Hash rounds per operation (k)

    # Storage
    backend: str = "memory"
    snapshot_path: Optional[str] = None  # Required for the file backend
    redis_url: Optional[str] = None  # Required for the redis backend

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_file(cls, path: str) -> "FilterConfig":
        """Load configuration from a JSON file."""
        with open(path, "r") as f:
            data = json.load(f)
        return cls(**data)

    def to_file(self, path: str):
        """Save configuration to a JSON file."""
        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)

    def validate(self) -> bool:
        """Validate configuration parameters."""
        if self.capacity < 1:
            raise ValueError(f"capacity must be positive, got {self.capacity}")

        if self.rounds < 1:
            raise ValueError(f"rounds must be at least 1, got {self.rounds}")

        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend: {self.backend}")

        if self.backend == "file" and not self.snapshot_path:
            raise ValueError("file backend requires snapshot_path")

        if self.backend == "redis" and not self.redis_url:
            raise ValueError("redis backend requires redis_url")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Invalid log level: {self.log_level}")

        return True


def configure_logging(level: str = "INFO"):
    """Drop structlog events below ``level``."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def open_filter(config: FilterConfig) -> BloomFilter:
    """Create the filter described by ``config``, applying its log level."""
    config.validate()
    configure_logging(config.log_level)

    if config.backend == "file":
        return file_filter(config.snapshot_path, config.capacity, config.rounds)
    if config.backend == "redis":
        return redis_filter(config.redis_url, config.capacity, config.rounds)
    return memory_filter(config.capacity, config.rounds)
