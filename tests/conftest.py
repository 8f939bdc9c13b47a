"""
Shared fixtures for ezcalc tests.

Every test gets its own sqlite history file under tmp_path.
"""
import logging

import pytest

from ezcalc.app import create_app
from ezcalc.configure import Config
from ezcalc.db import DB
from ezcalc.service import CalculatorService


@pytest.fixture
def datafile(tmp_path):
    return str(tmp_path / ".ezcalcdata")


@pytest.fixture
def config(datafile):
    return Config(datafile=datafile, secret_key="test-secret", log_level=logging.DEBUG)


@pytest.fixture
def store(datafile):
    return DB(datafile)


@pytest.fixture
def service(store):
    return CalculatorService(store)


@pytest.fixture
def app(config):
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
