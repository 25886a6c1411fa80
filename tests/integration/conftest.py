import os
import sys
import shutil
import socket
import time
import subprocess
from pathlib import Path
import urllib.request

import pytest

from kinpath.models import Individual, Family, TreeData
from kinpath.storage import Storage


def _find_free_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    addr, port = s.getsockname()
    s.close()
    return port


@pytest.fixture(scope="module")
def live_server(tmp_path_factory):
    """Start a uvicorn server over a seeded store and yield its base url.

    The package is copied into a temp dir so the server never writes into the
    repository; the store path is passed through KINPATH_DB_FILE.
    """
    tmp = tmp_path_factory.mktemp("kp_live")
    repo_root = Path(__file__).resolve().parents[2]
    shutil.copytree(repo_root / "kinpath", tmp / "kinpath")

    db = tmp / "data" / "kinpath.db"
    st = Storage(db)
    st.save_tree(TreeData(
        site="1",
        tree="7",
        individuals=[Individual(1), Individual(2), Individual(3, biological_family_id=100), Individual(4, biological_family_id=100)],
        families=[Family(100, husband_id=1, wife_id=2)],
    ))
    st.close()

    port = _find_free_port()
    cmd = [sys.executable, "-m", "uvicorn", "kinpath.web.app:app", "--host", "127.0.0.1", "--port", str(port)]
    env = os.environ.copy()
    env["KINPATH_DB_FILE"] = str(db)
    env.pop("KINPATH_CONFIG", None)
    env_pythonpath = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = str(tmp) + (os.pathsep + env_pythonpath if env_pythonpath else "")
    proc = subprocess.Popen(cmd, cwd=str(tmp), env=env, stdout=None, stderr=None)

    base = f"http://127.0.0.1:{port}"
    deadline = time.time() + 30
    last_exc = None
    while time.time() < deadline:
        try:
            with urllib.request.urlopen(base + "/openapi.json", timeout=1) as r:
                if r.status == 200:
                    break
        except Exception as e:
            last_exc = e
            time.sleep(0.2)
    else:
        proc.kill()
        pytest.fail(f"Server did not become ready in time; last error: {last_exc}")

    try:
        yield base
    finally:
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
