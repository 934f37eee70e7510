"""
Configuration for Swagify.

Loaded from environment variables (a .env file is honoured by the CLI), a
JSON/YAML config file, or CLI args.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Set

from .base import (
    DEFAULT_ANNOTATION_NAME,
    DEFAULT_HANDLER_SUFFIX,
    DEFAULT_STATUS_ENUM_NAME,
    DESCRIPTION_PLACEHOLDER,
)

# =============================================================================
# IGNORE PATTERNS
# =============================================================================
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Version control
    ".git", ".svn", ".hg",
    # .NET build output and tooling
    "bin", "obj", ".vs", "packages", "TestResults", "artifacts",
    # Frontend dependencies shipped next to the API
    "node_modules", "wwwroot",
    # IDE/OS
    ".vscode", ".idea", ".DS_Store",
}


@dataclass
class SwagifyConfig:
    """
    Swagify configuration with sensible defaults.
    """
    # Which files and annotations to work on
    handler_suffix: str = DEFAULT_HANDLER_SUFFIX
    annotation_name: str = DEFAULT_ANNOTATION_NAME
    status_enum_name: str = DEFAULT_STATUS_ENUM_NAME
    description_placeholder: str = DESCRIPTION_PLACEHOLDER

    # File discovery
    ignore_dirs: Set[str] = field(default_factory=set)
    max_file_size_mb: int = 10
    encoding: str = "utf-8"

    def __post_init__(self):
        """Apply default ignore dirs if not set."""
        if not self.ignore_dirs:
            self.ignore_dirs = DEFAULT_IGNORE_DIRS.copy()

    @classmethod
    def from_env(cls) -> "SwagifyConfig":
        """Load configuration from environment variables."""
        ignore = os.getenv("SWAGIFY_IGNORE_DIRS")
        return cls(
            handler_suffix=os.getenv("SWAGIFY_HANDLER_SUFFIX", DEFAULT_HANDLER_SUFFIX),
            annotation_name=os.getenv("SWAGIFY_ANNOTATION_NAME", DEFAULT_ANNOTATION_NAME),
            status_enum_name=os.getenv("SWAGIFY_STATUS_ENUM", DEFAULT_STATUS_ENUM_NAME),
            description_placeholder=os.getenv("SWAGIFY_PLACEHOLDER", DESCRIPTION_PLACEHOLDER),
            ignore_dirs={d.strip() for d in ignore.split(",") if d.strip()} if ignore else set(),
            max_file_size_mb=int(os.getenv("SWAGIFY_MAX_FILE_SIZE", 10)),
            encoding=os.getenv("SWAGIFY_ENCODING", "utf-8"),
        )

    @classmethod
    def from_file(cls, path: str) -> "SwagifyConfig":
        """Load configuration from JSON or YAML file."""
        with open(path, 'r') as f:
            if path.endswith(('.yaml', '.yml')):
                import yaml
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        # Convert ignore_dirs list to set if present
        if 'ignore_dirs' in data and isinstance(data['ignore_dirs'], list):
            data['ignore_dirs'] = set(data['ignore_dirs'])

        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "handler_suffix": self.handler_suffix,
            "annotation_name": self.annotation_name,
            "status_enum_name": self.status_enum_name,
            "description_placeholder": self.description_placeholder,
            "ignore_dirs": sorted(self.ignore_dirs),
            "max_file_size_mb": self.max_file_size_mb,
            "encoding": self.encoding,
        }
