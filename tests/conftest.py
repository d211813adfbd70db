import os
import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep tests on built-in defaults: never pick up a local runtime.yaml.
os.environ.setdefault("ELITE65_CONFIG_PATH", str(PROJECT_ROOT / "tests" / "_absent_runtime.yaml"))
