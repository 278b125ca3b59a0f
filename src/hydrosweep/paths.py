from pathlib import Path

# src/hydrosweep/paths.py -> src/hydrosweep -> src -> ROOT
REPO_ROOT = Path(__file__).resolve().parent.parent.parent

# Canonical directories
CONFIG_DIR = REPO_ROOT / "configs"
