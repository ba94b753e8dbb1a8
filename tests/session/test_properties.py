# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for SessionProperties validation and binding."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from pydantic import ValidationError

from tandem.core.config import Config
from tandem.session.properties import SessionProperties


class TestDefaults:
    def test_defaults(self):
        props = SessionProperties()
        assert props.cookie_name == "_session"
        assert props.path == "/"
        assert props.domain is None
        assert props.insecure is False
        assert props.same_site is None
        assert props.expires == timedelta(days=30)
        assert props.max_age is None
        assert props.redirect_path == "/login"
        assert props.store_ttl == timedelta(days=30)
        assert props.token_bytes == 24
        assert props.max_sessions_per_key is None

    def test_frozen(self):
        props = SessionProperties()
        with pytest.raises(ValidationError):
            props.cookie_name = "other"


class TestLifetime:
    def test_expires(self):
        assert SessionProperties(expires=timedelta(days=10)).lifetime == timedelta(days=10)

    def test_max_age_takes_precedence(self):
        props = SessionProperties(expires=timedelta(days=10), max_age=60)
        assert props.lifetime == timedelta(seconds=60)

    def test_browser_session(self):
        assert SessionProperties(expires=None).lifetime is None


class TestValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"expires": timedelta(0)},
            {"store_ttl": timedelta(seconds=-1)},
            {"max_age": 0},
            {"token_bytes": 8},
            {"max_sessions_per_key": 0},
            {"cookie_name": ""},
            {"same_site": "sideways"},
            {"same_site": "none", "insecure": True},
        ],
    )
    def test_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            SessionProperties(**kwargs)

    def test_insecure_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tandem.session.properties"):
            SessionProperties(insecure=True)
        assert "without Secure" in caplog.text


class TestBinding:
    def test_bind_from_config(self):
        config = Config({"tandem": {"session": {"cookie_name": "sid", "same_site": "strict", "max_age": 120}}})
        props = config.bind(SessionProperties)
        assert props.cookie_name == "sid"
        assert props.same_site == "strict"
        assert props.lifetime == timedelta(seconds=120)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("TANDEM_SESSION_COOKIE_NAME", "from_env")
        props = Config({"tandem": {"session": {"cookie_name": "sid"}}}).bind(SessionProperties)
        assert props.cookie_name == "from_env"

    def test_invalid_config_names_prefix(self):
        config = Config({"tandem": {"session": {"token_bytes": 4}}})
        with pytest.raises(ValueError, match="tandem.session"):
            config.bind(SessionProperties)
