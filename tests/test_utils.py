from __future__ import annotations

from sonar_maven.utils import is_encrypted, join_as_csv, put_relevant, split_as_csv


def test_join_as_csv_quotes_values_with_commas() -> None:
    assert join_as_csv(["/home/me/artifact-123,456.jar", "/opt/lib"]) == '"/home/me/artifact-123,456.jar",/opt/lib'
    assert join_as_csv([]) == ""


def test_split_as_csv_honours_quotes() -> None:
    assert split_as_csv('"/a,b.jar",/c,/d') == ["/a,b.jar", "/c", "/d"]
    assert split_as_csv("/c,/d") == ["/c", "/d"]
    assert split_as_csv(None) == []
    assert split_as_csv("") == []


def test_split_inverts_join() -> None:
    values = ["x", "y,z", "w"]
    assert split_as_csv(join_as_csv(values)) == values


def test_is_encrypted() -> None:
    assert is_encrypted("{COQLCE6DU6GtcS5P=}")
    assert is_encrypted("{abc}trailing")
    assert not is_encrypted("plain")
    assert not is_encrypted("")
    assert not is_encrypted(None)


def test_put_relevant_drops_encrypted_values_outside_sonar_and_env_keys() -> None:
    src = {
        "sonar.password": "{secret}",
        "env.TOKEN": "{secret}",
        "db.password": "{secret}",
        "plain": "value",
        "unset": None,
    }
    dest = put_relevant(src, {"existing": "1"})

    assert dest == {
        "existing": "1",
        "sonar.password": "{secret}",
        "env.TOKEN": "{secret}",
        "plain": "value",
    }
