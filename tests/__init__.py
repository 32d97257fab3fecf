"""Tests for the shared ``utils`` helpers.

The workflow engine keeps its own tests beside the code under
``modules/client_workflow/tests``.  Running this package alone still needs the
repository root on ``sys.path`` so ``utils`` and ``modules`` import the same
way they do inside the application.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))
