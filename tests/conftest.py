import os
import sys
import tempfile
import shutil
import atexit
from pathlib import Path

import pytest

# Ensure repo root is on sys.path so tests can import the package directly
root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from kinpath.models import Individual, Family, TreeData  # noqa: E402

_kp_test_data_dir = None


def pytest_configure(config):
    """Point KINPATH_DB_FILE at a session-scoped temporary directory so the
    app and the CLI never write into the repository-local `data/` folder.
    """
    global _kp_test_data_dir
    td = tempfile.mkdtemp(prefix="kp_test_data_")
    _kp_test_data_dir = td
    os.environ.setdefault("KINPATH_DB_FILE", str(Path(td) / "kinpath.db"))


def pytest_unconfigure(config):
    _atexit_cleanup()


def _atexit_cleanup():
    global _kp_test_data_dir
    td = _kp_test_data_dir
    _kp_test_data_dir = None
    if td and os.path.exists(td):
        shutil.rmtree(td, ignore_errors=True)


atexit.register(_atexit_cleanup)


@pytest.fixture
def small_family():
    """Couple 1+2 (family 100) with biological children 3 and 4; 5 is isolated."""
    individuals = [
        Individual(1),
        Individual(2),
        Individual(3, biological_family_id=100),
        Individual(4, biological_family_id=100),
        Individual(5),
    ]
    families = [Family(100, husband_id=1, wife_id=2)]
    return TreeData(site="1", tree="7", individuals=individuals, families=families)


@pytest.fixture
def cousins_tree():
    """Three generations.

        10 + 11 (family 200)
        /          \\
      12 + 13     14 + 15      (12 and 14 are children of 200)
     (fam 201)   (fam 202)
        |           |
        16          17
    """
    individuals = [
        Individual(10),
        Individual(11),
        Individual(12, biological_family_id=200),
        Individual(13),
        Individual(14, biological_family_id=200),
        Individual(15),
        Individual(16, biological_family_id=201),
        Individual(17, biological_family_id=202),
    ]
    families = [
        Family(200, husband_id=10, wife_id=11),
        Family(201, husband_id=12, wife_id=13),
        Family(202, husband_id=14, wife_id=15),
    ]
    return TreeData(site="1", tree="8", individuals=individuals, families=families)
