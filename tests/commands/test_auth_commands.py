from typer.testing import CliRunner

from mbr.api.client import MetabaseClient
from mbr.errors import RemoteError
from mbr.main import app

runner = CliRunner()


def _invoke(tmp_path, *args, env=None, input=None):
    return runner.invoke(app, ["--config-dir", str(tmp_path), *args], env=env, input=input)


def test_login_stores_session_token(tmp_path, mocker, fake_keyring):
    login = mocker.patch.object(MetabaseClient, "login", return_value="tok-123")

    result = _invoke(tmp_path, "auth", "login", "-u", "me@example.com", "--password", "pw")

    assert result.exit_code == 0, result.output
    login.assert_called_once_with("me@example.com", "pw")
    assert fake_keyring[("mbr-cli", "session-default")] == "tok-123"
    assert "Logged in as me@example.com" in result.output


def test_login_reads_environment(tmp_path, mocker, fake_keyring):
    login = mocker.patch.object(MetabaseClient, "login", return_value="tok")

    result = _invoke(tmp_path, "auth", "login",
                     env={"MBR_USERNAME": "env@example.com", "MBR_PASSWORD": "secret"})

    assert result.exit_code == 0, result.output
    login.assert_called_once_with("env@example.com", "secret")


def test_login_prompts_for_missing_values(tmp_path, mocker, fake_keyring):
    login = mocker.patch.object(MetabaseClient, "login", return_value="tok")

    result = _invoke(tmp_path, "auth", "login", input="typed@example.com\nhunter2\n")

    assert result.exit_code == 0, result.output
    login.assert_called_once_with("typed@example.com", "hunter2")


def test_login_rejected(tmp_path, mocker, fake_keyring):
    mocker.patch.object(
        MetabaseClient, "login",
        side_effect=RemoteError("401 - Bad credentials", "/api/session", status=401),
    )

    result = _invoke(tmp_path, "auth", "login", "-u", "me@example.com", "--password", "bad")

    assert result.exit_code == 4
    assert "Unauthorized" in result.output
    assert fake_keyring == {}


def test_login_warns_when_api_key_wins(tmp_path, mocker, fake_keyring):
    mocker.patch.object(MetabaseClient, "login", return_value="tok")

    result = _invoke(tmp_path, "--api-key", "abc", "auth", "login", "-u", "a@b.co",
                     "--password", "pw")

    assert result.exit_code == 0, result.output
    assert "takes precedence" in result.output


def test_logout_clears_token(tmp_path, mocker, fake_keyring):
    fake_keyring[("mbr-cli", "session-default")] = "tok"
    logout = mocker.patch.object(MetabaseClient, "logout")

    result = _invoke(tmp_path, "auth", "logout")

    assert result.exit_code == 0, result.output
    logout.assert_called_once()
    assert fake_keyring == {}
    assert "Logged out" in result.output


def test_logout_survives_server_failure(tmp_path, mocker, fake_keyring):
    fake_keyring[("mbr-cli", "session-default")] = "tok"
    mocker.patch.object(MetabaseClient, "logout",
                        side_effect=RemoteError("refused", "/api/session"))

    result = _invoke(tmp_path, "auth", "logout")

    assert result.exit_code == 0, result.output
    assert fake_keyring == {}


def test_logout_without_session(tmp_path, fake_keyring):
    result = _invoke(tmp_path, "auth", "logout")

    assert result.exit_code == 0, result.output
    assert "No stored session" in result.output


def test_status_modes(tmp_path, fake_keyring):
    with_key = _invoke(tmp_path, "auth", "status", env={"MBR_API_KEY": "abc"})
    assert with_key.exit_code == 0, with_key.output
    assert "api-key" in with_key.output

    fake_keyring[("mbr-cli", "session-default")] = "tok"
    with_session = _invoke(tmp_path, "auth", "status")
    assert "session" in with_session.output
    assert "yes" in with_session.output

    fake_keyring.clear()
    nothing = _invoke(tmp_path, "auth", "status")
    assert nothing.exit_code == 0
    assert "No credential configured" in nothing.output
