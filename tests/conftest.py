from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# Tests must never reach the real speech or LLM providers.
for _key in ("OPENAI_API_KEY", "LLM_API_KEY", "LLM_ENDPOINT", "ELEVEN_API_KEY", "ELEVEN_VOICE_ID"):
    os.environ.pop(_key, None)


@pytest.fixture(scope="session")
def app():
    # Short timings so end-to-end WebSocket tests run quickly.
    os.environ["SILENCE_THRESHOLD_MS"] = "100"
    os.environ["POST_PLAYBACK_GUARD_MS"] = "0"
    os.environ["PLAYBACK_FRAME_MS"] = "0"

    import importlib

    for module_name in [
        "config.settings",
        "api.dependencies",
        "api.routes",
        "api.stream_routes",
        "main",
    ]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def deps(app):
    import api.dependencies as dependencies

    yield dependencies
    app.dependency_overrides.clear()
