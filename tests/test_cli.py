"""Test the plsync command line"""

from datetime import date
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from playlist_sync import __version__
from playlist_sync.catalog.models import PlaylistMetadata
from playlist_sync.cli import cli
from playlist_sync.core.database import Database
from playlist_sync.core.exceptions import FetchError
from playlist_sync.core.repositories import Repositories


PLAYLIST_URL = "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M?si=abc"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    monkeypatch.delenv("SPOTIFY_CLIENT_ID", raising=False)
    monkeypatch.delenv("SPOTIFY_CLIENT_SECRET", raising=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def db_path(temp_dir):
    return temp_dir / "data" / "music.db"


@pytest.fixture
def config_path(temp_dir, db_path):
    path = temp_dir / "config.yaml"
    path.write_text(
        "spotify:\n"
        "  client_id: \"abc\"\n"
        "  client_secret: \"def\"\n"
        "database:\n"
        f"  path: \"{db_path}\"\n",
        encoding="utf-8"
    )
    return path


@pytest.fixture
def spotify(catalog):
    """Replace the Spotify stack with the in-memory catalog"""
    with patch("playlist_sync.cli.SpotifyClient.from_credentials", return_value=Mock()) as from_credentials, \
            patch("playlist_sync.cli.SpotifyCatalogService", return_value=catalog):
        yield from_credentials


def stored(db_path):
    database = Database(db_path)
    return database, Repositories.from_database(database)


class TestArguments:
    """Test argument handling before anything runs"""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert f"playlist-sync {__version__}" in result.output

    def test_no_action_shows_help(self, runner):
        result = runner.invoke(cli, [])

        assert result.exit_code == 0
        assert "--playlist" in result.output

    def test_actions_are_exclusive(self, runner, config_path):
        """Test two actions at once are a usage error"""
        result = runner.invoke(cli, ["--list", "--all", "--config", str(config_path)])

        assert result.exit_code == 2
        assert "only one of" in result.output

    def test_invalid_playlist_url(self, runner, config_path):
        """Test a non-playlist URL is refused"""
        result = runner.invoke(cli, ["--add", "https://open.spotify.com/track/4cOdK2wGLETKBW3PvgPWqT",
                                     "--config", str(config_path)])

        assert result.exit_code == 2

    def test_missing_config(self, runner, temp_dir):
        """Test running without config.yaml exits with 1"""
        with runner.isolated_filesystem(temp_dir=temp_dir):
            result = runner.invoke(cli, ["--list"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestPlaylists:
    """Test --add, --list and --releases"""

    def test_list_empty(self, runner, config_path):
        """Test --list works without Spotify credentials being checked"""
        with patch("playlist_sync.cli.SpotifyClient.from_credentials") as from_credentials:
            result = runner.invoke(cli, ["--list", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "No playlists registered" in result.output
        from_credentials.assert_not_called()

    def test_add_and_list(self, runner, config_path, spotify):
        result = runner.invoke(cli, ["--add", PLAYLIST_URL, "--config", str(config_path)])

        assert result.exit_code == 0
        assert "Registered playlist 1: Release Radar" in result.output

        result = runner.invoke(cli, ["--list", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "37i9dQZF1DXcBWIGoYBM5M" in result.output
        assert "never" in result.output

    def test_add_reads_metadata_only(self, runner, config_path, db_path, catalog, spotify):
        """Test registering fetches no tracks and keys the playlist by the given id"""
        catalog.add_track('t1')
        catalog.metadata = PlaylistMetadata(external_id="", name="Release Radar", description="")

        result = runner.invoke(cli, ["--add", PLAYLIST_URL, "--config", str(config_path)])

        assert result.exit_code == 0
        assert catalog.calls == [("fetch_playlist", "37i9dQZF1DXcBWIGoYBM5M")]
        database, repositories = stored(db_path)
        try:
            assert repositories.playlists.get_by_id(1).playlist_id == "37i9dQZF1DXcBWIGoYBM5M"
        finally:
            database.close()

    def test_add_twice(self, runner, config_path, spotify):
        """Test registering the same playlist again keeps the first id"""
        runner.invoke(cli, ["--add", PLAYLIST_URL, "--config", str(config_path)])
        result = runner.invoke(cli, ["--add", PLAYLIST_URL, "--config", str(config_path)])

        assert result.exit_code == 0
        assert "already registered as 1" in result.output

    def test_releases_unknown_playlist(self, runner, config_path):
        result = runner.invoke(cli, ["--releases", "7", "--config", str(config_path)])

        assert result.exit_code == 4
        assert "Unknown playlist id: 7" in result.output

    def test_rejected_credentials(self, runner, config_path):
        """Test an authentication failure exits with 1 and a hint"""
        error = FetchError("Spotify authentication failed", is_auth_error=True)
        with patch("playlist_sync.cli.SpotifyClient.from_credentials", side_effect=error):
            result = runner.invoke(cli, ["--add", PLAYLIST_URL, "--config", str(config_path)])

        assert result.exit_code == 1
        assert "Spotify error" in result.output
        assert "client_id" in result.output


class TestReconcile:
    """Test --playlist and --all"""

    def test_reconcile_playlist(self, runner, config_path, db_path, catalog, spotify):
        """Test a registered playlist gets its tracks and releases"""
        catalog.add_track('t1', artist_id='a1', album_id='al1', release_date=date.today())
        catalog.add_track('t2', artist_id='a1', album_id='al2', release_date=date(2001, 1, 1))
        runner.invoke(cli, ["--add", PLAYLIST_URL, "--config", str(config_path)])

        result = runner.invoke(cli, ["--playlist", "1", "--config", str(config_path)])

        assert result.exit_code == 0
        database, repositories = stored(db_path)
        try:
            assert repositories.tracks.count_by_playlist(1) == 2
            assert len(repositories.releases.get_by_playlist(1)) == 1
            assert repositories.playlists.get_by_id(1).last_changed is not None
        finally:
            database.close()

        result = runner.invoke(cli, ["--releases", "1", "--config", str(config_path)])

        assert result.exit_code == 0
        assert "Artist a1 - Album al1" in result.output

    def test_unknown_playlist_does_not_fail(self, runner, config_path, spotify):
        """Test an unknown id is reported and the command still succeeds"""
        result = runner.invoke(cli, ["--playlist", "42", "--config", str(config_path)])

        assert result.exit_code == 0

    def test_all_without_playlists(self, runner, config_path, db_path, spotify):
        result = runner.invoke(cli, ["--all", "--config", str(config_path)])

        assert result.exit_code == 0
        assert db_path.exists()
