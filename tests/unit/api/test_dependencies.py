"""Unit tests for API dependencies."""

import pytest

from ticketcache.api.dependencies import get_caller_identity, get_selected_repos
from ticketcache.security import MissingCredentialsError, UntrackedRepoAccessError
from ticketcache.state_store import StateStore


@pytest.mark.unit
class TestCallerIdentity:
    """Tests for get_caller_identity."""

    def test_stable_per_credential(self) -> None:
        first = get_caller_identity("Bearer abc")

        assert first == get_caller_identity("bearer  abc")
        assert first.startswith("caller-")
        assert len(first) == len("caller-") + 16
        assert "abc" not in first

    def test_distinct_credentials(self) -> None:
        assert get_caller_identity("Bearer abc") != get_caller_identity("Bearer abd")

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Token abc"])
    def test_missing_credential(self, header: str | None) -> None:
        with pytest.raises(MissingCredentialsError):
            get_caller_identity(header)


@pytest.mark.unit
class TestSelectedRepos:
    """Tests for get_selected_repos."""

    @pytest.fixture
    def tracked(self, store: StateStore) -> StateStore:
        store.create_repo("acme/widgets")
        store.create_repo("acme/gadgets")
        store.create_repo("acme/old", enabled=False)
        return store

    def test_defaults_to_enabled(self, tracked: StateStore) -> None:
        repos = get_selected_repos(tracked, None)

        assert [r.full_name for r in repos] == ["acme/gadgets", "acme/widgets"]

    def test_filter_normalized_and_deduplicated(self, tracked: StateStore) -> None:
        repos = get_selected_repos(tracked, ["ACME/Widgets, acme/old", "acme/widgets/"])

        assert [r.full_name for r in repos] == ["acme/widgets", "acme/old"]

    def test_untracked_rejected(self, tracked: StateStore) -> None:
        with pytest.raises(UntrackedRepoAccessError) as exc_info:
            get_selected_repos(tracked, ["acme/widgets,evil/repo"])

        assert exc_info.value.repos == ["evil/repo"]
