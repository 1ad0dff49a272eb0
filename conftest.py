import sys
from pathlib import Path

# Tests import the package as `src.gradstack...` from the repository root.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
