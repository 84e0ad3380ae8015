import os

# 测试只输出控制台日志
os.environ["LOG_FILE"] = ""

import pytest
from fastapi.testclient import TestClient

from src.app import create_app
from src.utils.config import Settings
from src.utils.database import Database


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'chronicle.db'}",
        llm_api_key="",
        log_file=""
    )


@pytest.fixture
def db(tmp_path):
    return Database(f"sqlite:///{tmp_path / 'services.db'}")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def login(client):
    """登录并返回 (token, user)"""
    def _login(email="a@x.com", name=None):
        response = client.post("/auth/login", json={"email": email, "name": name})
        assert response.status_code == 200
        body = response.json()
        return body["token"], body["user"]
    return _login
