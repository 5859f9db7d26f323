#!/usr/bin/env python3
"""Launcher for the weekly budget dashboard.

Runs Streamlit on ``budget_dashboard/dashboard.py`` with the project root
on ``sys.path`` so package imports resolve.
"""

import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
dashboard_path = project_root / "budget_dashboard" / "dashboard.py"

if __name__ == "__main__":
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(project_root), env.get("PYTHONPATH")]))
    raise SystemExit(subprocess.run(
        [sys.executable, "-m", "streamlit", "run", str(dashboard_path), *sys.argv[1:]],
        env=env,
    ).returncode)
