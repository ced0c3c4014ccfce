import os

import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("MEDIAFLOW_"):
            monkeypatch.delenv(key)
