"""
Prompt templates kept as YAML under ``src/templates``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Dict

import yaml

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
PROMPTS_FILE = "prompts.yaml"


@lru_cache(maxsize=None)
def load_templates(filename: str = PROMPTS_FILE) -> Dict[str, str]:
    """Read and cache every template of ``filename``.

    Raises:
        FileNotFoundError: if the file is missing.
        yaml.YAMLError: if it is not valid YAML.
    """
    path = TEMPLATES_DIR / filename
    if not path.exists():
        raise FileNotFoundError(f"Template file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_template(name: str, filename: str = PROMPTS_FILE) -> str:
    templates = load_templates(filename)
    if name not in templates:
        raise KeyError(f"Template '{name}' not found in {filename}")
    return templates[name]


def format_template(name: str, **values) -> str:
    """Fill the ``{placeholders}`` of a template from ``values``."""
    return get_template(name).format(**values)
