"""
    Copyright 2024 Inmanta

    Licensed under the Apache License, Version 2.0 (the "License");
    you may not use this file except in compliance with the License.
    You may obtain a copy of the License at

        http://www.apache.org/licenses/LICENSE-2.0

    Unless required by applicable law or agreed to in writing, software
    distributed under the License is distributed on an "AS IS" BASIS,
    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
    See the License for the specific language governing permissions and
    limitations under the License.

    Contact: code@inmanta.com
"""

import os

import pytest

import bml.fs
from bml.client import BmlClient
from bml.config import Config
from utils import FakeBmlServer


@pytest.fixture(autouse=True)
def clean_config(monkeypatch, tmp_path):
    """
    Make sure no configuration of the machine running the tests leaks into the tests
    """
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("BML_"):
            monkeypatch.delenv(name)
    Config._reset()
    Config.load_config(main_cfg_file=str(tmp_path / "bml.cfg"))
    yield
    Config._reset()


@pytest.fixture
def filesystems():
    """
    Restore the registered file systems after the test
    """
    registered = dict(bml.fs._filesystems)
    yield bml.fs._filesystems
    bml.fs._filesystems.clear()
    bml.fs._filesystems.update(registered)


@pytest.fixture
def server() -> FakeBmlServer:
    return FakeBmlServer()


@pytest.fixture
def client(server: FakeBmlServer) -> BmlClient:
    with BmlClient(transport=server, user="alice") as bml_client:
        yield bml_client
