import json

from rxstorage.app import main
from rxstorage.auth.token_storage import DiskTokenStorage


class TestListCommand:
    def test_demo_categories(self, capsys):
        assert main(["list", "categories", "--demo"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines == ["2\tElectronics", "3\tLab Equipment", "4\tOffice Supplies", "1\tPower Tools"]

    def test_demo_items_over_several_pages(self, capsys):
        assert main(["list", "items", "--demo", "--pages", "2"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 40
        assert lines[0].startswith("45\t")

    def test_demo_search_as_json(self, capsys):
        assert main(["list", "authors", "--demo", "--search", "luis", "--json"]) == 0

        authors = json.loads(capsys.readouterr().out)
        assert [author["name"] for author in authors] == ["Luis Romero"]


class TestAuthCommand:
    def test_import_then_clear(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("RXSTORAGE_TOKEN_CACHE_DIR", str(tmp_path))

        assert main(
            ["auth", "import", "--access-token", "a", "--refresh-token", "r", "--expires-in", "3600"]
        ) == 0
        storage = DiskTokenStorage(tmp_path)
        assert storage.get_refresh_token() == "r"
        assert not storage.is_token_expired()
        storage.close()

        assert main(["auth", "clear"]) == 0
        storage = DiskTokenStorage(tmp_path)
        assert storage.get_access_token() is None
        storage.close()
        assert "cleared" in capsys.readouterr().out

    def test_list_without_tokens_prints_sign_in_hint(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("RXSTORAGE_TOKEN_CACHE_DIR", str(tmp_path))

        assert main(["list", "items"]) == 1

        err = capsys.readouterr().err
        assert "Session expired" in err
        assert "No refresh token available" in err
