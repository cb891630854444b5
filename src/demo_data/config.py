"""
Generator configuration: defaults, plus overrides from the environment.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_SEED_DATA_PATH = PROJECT_ROOT / "config" / "demo" / "seed_data.yaml"
DEFAULT_OUTPUT_DIR = Path("data/demo")

# Option keys holding demo-mode state
DEMO_MODE_OPTION = "peanut_booker_demo_mode"
DEMO_IDS_OPTION = "peanut_booker_demo_data_ids"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class GeneratorConfig:
    """Configuration for one demo generation run."""
    random_seed: Optional[int] = None
    """Seed for the shared random source; None means non-reproducible."""

    seed_data_path: Path = field(default_factory=lambda: DEFAULT_SEED_DATA_PATH)
    """YAML file with performers, customers, templates and taxonomy vocabulary."""

    collect_failures: bool = False
    """Record every skipped unit in GenerationSummary.failures."""

    output_dir: Path = field(default_factory=lambda: DEFAULT_OUTPUT_DIR)
    """Where the CLI exports generated tables."""

    history_days: int = 30
    """Availability is generated this many days into the past."""

    horizon_days: int = 90
    """...and this many days into the future."""

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "GeneratorConfig":
        """Build a config from DEMO_* environment variables (and a .env file)."""
        load_dotenv(dotenv_path=env_file)

        config = cls()
        seed = os.getenv("DEMO_RANDOM_SEED")
        if seed not in (None, ""):
            config.random_seed = int(seed)

        seed_path = os.getenv("DEMO_SEED_DATA_PATH")
        if seed_path:
            config.seed_data_path = Path(seed_path)

        collect = os.getenv("DEMO_COLLECT_FAILURES")
        if collect is not None:
            config.collect_failures = collect.strip().lower() in _TRUTHY

        output_dir = os.getenv("DEMO_OUTPUT_DIR")
        if output_dir:
            config.output_dir = Path(output_dir)

        return config
