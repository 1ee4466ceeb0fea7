"""Tests for the healthcheck services, the collector and the endpoints."""

import os

from sqlalchemy import create_engine

from lockbox.services.healthcheck import (
    ConfigWritableEnvironmentHealthcheck,
    ConnectDatabaseHealthcheck,
    FullBaseUrlCoreHealthcheck,
    HealthcheckService,
    HealthcheckServiceCollector,
    SelfRegistrationProviderApplicationHealthcheck,
    count_errors,
    render_report,
    to_legacy_array,
)

from tests.helpers import auth_headers


class _ExplodingHealthcheck(HealthcheckService):
    def check(self):
        raise RuntimeError("boom")

    def domain(self):
        return "core"

    def level(self):
        return "error"

    def success_message(self):
        return "ok"

    def failure_message(self):
        return "ko"

    def legacy_array_key(self):
        return "exploding"


class TestFullBaseUrl:

    def test_passes_when_set(self):
        check = FullBaseUrlCoreHealthcheck(lambda: "https://vault.example.com").check()
        assert check.is_passed()
        assert check.success_message() == "Full base url is set to https://vault.example.com"

    def test_fails_when_unset(self):
        check = FullBaseUrlCoreHealthcheck(lambda: None).check()
        assert not check.is_passed()
        assert check.failure_message().startswith("Full base url is not set.")
        assert check.help_message().startswith("Edit App.fullBaseUrl in ")

    def test_non_string_value_shows_type(self):
        check = FullBaseUrlCoreHealthcheck(lambda: 42).check()
        assert check.success_message() == 'Full base url is set to "int"'


class TestSelfRegistration:

    def test_closed_registration_passes(self):
        check = SelfRegistrationProviderApplicationHealthcheck(lambda: None).check()
        assert check.is_passed()
        assert check.success_message() == "Registration is closed, only administrators can add users."

    def test_open_registration_is_a_notice(self):
        check = SelfRegistrationProviderApplicationHealthcheck(lambda: "email-domains").check()
        assert not check.is_passed()
        assert check.level() == "notice"
        assert check.failure_message() == "The self registration provider is: email-domains."


class TestConfigWritable:

    def test_writable_directory_without_file(self, tmp_path):
        assert ConfigWritableEnvironmentHealthcheck(str(tmp_path), "lockbox.json").check().is_passed()

    def test_existing_writable_file(self, tmp_path):
        (tmp_path / "lockbox.json").write_text("{}")
        assert ConfigWritableEnvironmentHealthcheck(str(tmp_path), "lockbox.json").check().is_passed()

    def test_missing_directory(self, tmp_path):
        check = ConfigWritableEnvironmentHealthcheck(str(tmp_path / "missing"), "lockbox.json").check()
        assert not check.is_passed()
        assert any(line.startswith("sudo chown") for line in check.help_message())

    def test_read_only_file(self, tmp_path):
        config = tmp_path / "lockbox.json"
        config.write_text("{}")
        config.chmod(0o444)
        check = ConfigWritableEnvironmentHealthcheck(str(tmp_path), "lockbox.json").check()
        # root ignores file modes
        assert check.is_passed() == os.access(config, os.W_OK)


class TestConnectDatabase:

    def test_connects(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'ok.db'}")
        assert ConnectDatabaseHealthcheck(engine).check().is_passed()

    def test_unreachable_database(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'nope.db'}")
        check = ConnectDatabaseHealthcheck(engine).check()
        assert not check.is_passed()
        assert "OperationalError" in check.failure_message()


class TestCollector:

    def _collector(self):
        return HealthcheckServiceCollector(
            [
                FullBaseUrlCoreHealthcheck(lambda: None),
                SelfRegistrationProviderApplicationHealthcheck(lambda: "open"),
            ]
        )

    def test_filter_by_domain(self):
        collector = self._collector()
        assert len(collector.get_services("core")) == 1
        assert len(collector.get_services()) == 2

    def test_exception_reported_as_failure(self):
        collector = HealthcheckServiceCollector().add_service(_ExplodingHealthcheck())
        [result] = collector.run()
        assert result.passed is False
        assert "boom" in result.message

    def test_legacy_array(self):
        results = self._collector().run()
        assert to_legacy_array(results) == {
            "core": {"fullBaseUrl": False},
            "application": {"registrationClosed": {"selfRegistrationProvider": False}},
        }

    def test_report_and_error_count(self):
        results = self._collector().run()
        lines = render_report(results)
        assert any(line.startswith(" [FAIL] Full base url is not set.") for line in lines)
        assert any(line.startswith(" [HELP] Edit App.fullBaseUrl") for line in lines)
        assert " [INFO] The self registration provider is: open." in lines
        # notices are not errors
        assert count_errors(results) == 1


class TestHealthcheckApi:

    def test_report_for_admin(self, client, admin):
        resp = client.get("/healthcheck.json", headers=auth_headers(admin))
        assert resp.status_code == 200
        body = resp.json()["body"]
        assert body["core"]["fullBaseUrl"] is True
        assert body["database"]["connect"] is True
        assert body["environment"]["configWritable"] is True

    def test_report_forbidden_for_users(self, client, ada):
        assert client.get("/healthcheck.json", headers=auth_headers(ada)).status_code == 403

    def test_status_is_public(self, client):
        resp = client.get("/healthcheck/status.json")
        assert resp.status_code == 200
        assert resp.json()["body"] == "OK"
