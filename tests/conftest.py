# tests/conftest.py
# Ensure the project root (the folder that contains 'stepweave' and 'tests') is on
# sys.path so that `from stepweave...` imports work without an install.

import sys
import pathlib

ROOT = pathlib.Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)

if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

# Sanity check: make sure 'stepweave' is importable and looks like a package
try:
    import stepweave  # noqa: F401
except Exception as e:
    has_pkg = (ROOT / "stepweave" / "__init__.py").is_file()
    raise RuntimeError(
        f"Failed to import 'stepweave' from {ROOT_STR}. "
        f"stepweave/__init__.py exists: {has_pkg}"
    ) from e
