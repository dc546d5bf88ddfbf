"""Tests for API endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from uuid import uuid4

from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.dependencies import (
    get_caller,
    get_consideration_vote_service,
    get_eligibility_resolver,
    get_phase_transition_service,
    get_proposal_view_assembler,
    get_user_service,
)
from app.core.exceptions import DatabaseError
from app.main import app
from app.schemas.auth import UserProfile
from app.services.proposal_service import PhaseTransitionService
from app.services.vote_service import ConsiderationVoteService

API = settings.api_v1_prefix


def override_caller(caller):
    app.dependency_overrides[get_caller] = lambda: caller


class TestAuthentication:
    """Requests without a valid identity never reach the handlers."""

    def test_missing_token(self, test_client: TestClient) -> None:
        response = test_client.get(f"{API}/funding-rounds/{uuid4()}/consideration-proposals")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, test_client: TestClient) -> None:
        response = test_client.get(
            f"{API}/funding-rounds/{uuid4()}/consideration-proposals",
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401

    def test_token_from_wrong_issuer(self, test_client: TestClient, token_factory) -> None:
        token = token_factory(iss="someone-else")
        response = test_client.get(
            f"{API}/users/whoami", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    def test_access_token_cookie(self, test_client: TestClient, token_factory, store, assembler, make_caller) -> None:
        funding_round = store.add_round()
        override_caller(make_caller(store.add_user("bob")))
        app.dependency_overrides[get_proposal_view_assembler] = lambda: assembler
        test_client.cookies.set(settings.auth.access_token_cookie, token_factory())

        response = test_client.get(f"{API}/funding-rounds/{funding_round.id}/consideration-proposals")

        assert response.status_code == 200

    def test_public_paths(self, test_client: TestClient) -> None:
        with patch(
            "app.api.v1.endpoints.health.db_client.health_check",
            AsyncMock(return_value={"status": "healthy"}),
        ):
            health = test_client.get("/health")
        root = test_client.get("/")

        assert health.status_code == 200
        assert health.json()["status"] == "healthy"
        assert root.status_code == 200
        assert root.json()["health"] == "/health"


class TestFundingRoundEndpoints:
    """Tests for the proposal listings and eligibility."""

    def test_consideration_listing_envelope(
        self, test_client: TestClient, auth_headers, store, repositories, assembler, make_caller
    ) -> None:
        funding_round = store.add_round()
        owner = store.add_user("alice")
        store.add_proposal(funding_round, owner, name="Open Tooling")
        override_caller(make_caller(store.add_user("bob")))
        app.dependency_overrides[get_proposal_view_assembler] = lambda: assembler

        response = test_client.get(
            f"{API}/funding-rounds/{funding_round.id}/consideration-proposals",
            headers={**auth_headers, "X-Correlation-ID": "corr-123"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] is True
        assert body["meta"]["request_id"] == "corr-123"
        assert response.headers["X-Correlation-ID"] == "corr-123"
        proposal = body["data"]["proposals"][0]
        assert proposal["proposal_name"] == "Open Tooling"
        assert proposal["submitter"] == "alice"
        assert proposal["status"] == "pending"
        assert proposal["vote_stats"] == {"approved": 0, "rejected": 0, "total": 0}
        assert proposal["current_phase"] == "CONSIDERATION"
        assert body["data"]["pending_count"] == 1

    def test_unknown_round_is_not_found(
        self, test_client: TestClient, auth_headers, store, assembler, make_caller
    ) -> None:
        override_caller(make_caller(store.add_user("bob")))
        app.dependency_overrides[get_proposal_view_assembler] = lambda: assembler

        response = test_client.get(
            f"{API}/funding-rounds/{uuid4()}/deliberation-proposals", headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["detail"]["title"] == "Not Found"

    def test_storage_failure_is_opaque(self, test_client: TestClient, auth_headers, store, make_caller) -> None:
        failing = AsyncMock()
        failing.assemble_consideration_list.side_effect = DatabaseError(
            "Database error while retrieving proposals",
            original_error=RuntimeError("relation consideration_votes does not exist"),
        )
        override_caller(make_caller(store.add_user("bob")))
        app.dependency_overrides[get_proposal_view_assembler] = lambda: failing

        response = test_client.get(
            f"{API}/funding-rounds/{uuid4()}/consideration-proposals", headers=auth_headers
        )

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["detail"] == "Internal server error"
        assert "consideration_votes" not in response.text

    def test_reviewer_eligibility(
        self, test_client: TestClient, auth_headers, store, eligibility, make_caller
    ) -> None:
        group_id = uuid4()
        link_id = uuid4()
        store.add_member(group_id, link_id)
        funding_round = store.add_round(group_ids=[group_id])
        override_caller(make_caller(store.add_user("linked", link_id=link_id)))
        app.dependency_overrides[get_eligibility_resolver] = lambda: eligibility

        response = test_client.get(
            f"{API}/funding-rounds/{funding_round.id}/reviewer-eligibility", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["is_reviewer"] is True


class TestProposalEndpoints:
    """Tests for vote writes and transitions."""

    def _consideration_service(self, repositories, tally, state_machine):
        return ConsiderationVoteService(
            repositories.proposals, repositories.consideration_votes, tally, state_machine
        )

    def test_consideration_vote(
        self, test_client: TestClient, auth_headers, store, repositories, tally, state_machine, make_caller
    ) -> None:
        proposal = store.add_proposal(store.add_round(), store.add_user("alice"))
        override_caller(make_caller(store.add_user("bob")))
        service = self._consideration_service(repositories, tally, state_machine)
        app.dependency_overrides[get_consideration_vote_service] = lambda: service

        response = test_client.post(
            f"{API}/proposals/{proposal.id}/consideration-vote",
            json={"decision": "APPROVED", "feedback": "Strong team"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "approved"
        assert data["vote_stats"] == {"approved": 1, "rejected": 0, "total": 1}

    def test_missing_decision_rejected_before_write(
        self, test_client: TestClient, auth_headers, store, repositories, tally, state_machine, make_caller
    ) -> None:
        proposal = store.add_proposal(store.add_round(), store.add_user("alice"))
        override_caller(make_caller(store.add_user("bob")))
        service = self._consideration_service(repositories, tally, state_machine)
        app.dependency_overrides[get_consideration_vote_service] = lambda: service

        response = test_client.post(
            f"{API}/proposals/{proposal.id}/consideration-vote",
            json={"feedback": "no decision"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert any(error["loc"][-1] == "decision" for error in response.json()["detail"])
        assert repositories.consideration_votes.upsert_calls == 0

    def test_vote_in_wrong_phase_conflicts(
        self, test_client: TestClient, auth_headers, store, repositories, tally, state_machine, make_caller
    ) -> None:
        proposal = store.add_proposal(store.add_round(), store.add_user("alice"), status="VOTING")
        override_caller(make_caller(store.add_user("bob")))
        service = self._consideration_service(repositories, tally, state_machine)
        app.dependency_overrides[get_consideration_vote_service] = lambda: service

        response = test_client.post(
            f"{API}/proposals/{proposal.id}/consideration-vote",
            json={"decision": "REJECTED"},
            headers=auth_headers,
        )

        assert response.status_code == 409

    def test_transition_requires_admin(self, test_client: TestClient, auth_headers) -> None:
        response = test_client.post(
            f"{API}/proposals/1/transition",
            json={"target_status": "DELIBERATION"},
            headers=auth_headers,
        )

        assert response.status_code == 403

    def test_admin_transition(
        self, test_client: TestClient, token_factory, store, repositories, state_machine, make_caller
    ) -> None:
        proposal = store.add_proposal(store.add_round(), store.add_user("alice"))
        override_caller(make_caller(store.add_user("admin"), role="admin"))
        service = PhaseTransitionService(repositories.proposals, state_machine)
        app.dependency_overrides[get_phase_transition_service] = lambda: service

        response = test_client.post(
            f"{API}/proposals/{proposal.id}/transition",
            json={"target_status": "DELIBERATION"},
            headers={"Authorization": f"Bearer {token_factory(role='admin')}"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["to_status"] == "DELIBERATION"
        assert store.proposals[proposal.id].status == "DELIBERATION"


class TestUserEndpoints:
    """Tests for profile and logout."""

    def test_whoami(self, test_client: TestClient, auth_headers) -> None:
        user_service = AsyncMock()
        user_service.get_current_user_profile.return_value = UserProfile(
            id=uuid4(),
            auth_user_id="auth-user-1",
            email="reviewer@example.com",
            username="rev",
            role="user",
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        app.dependency_overrides[get_user_service] = lambda: user_service

        response = test_client.get(f"{API}/users/whoami", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["username"] == "rev"
        current_user = user_service.get_current_user_profile.await_args.args[0]
        assert current_user.id == "auth-user-1"

    def test_link_id_claim_reaches_current_user(self, test_client: TestClient, token_factory) -> None:
        link_id = uuid4()
        user_service = AsyncMock()
        user_service.get_current_user_profile.return_value = UserProfile(
            id=uuid4(), auth_user_id="auth-user-1", link_id=link_id
        )
        app.dependency_overrides[get_user_service] = lambda: user_service
        token = token_factory(app_metadata={settings.auth.link_id_claim: str(link_id)})

        response = test_client.get(f"{API}/users/whoami", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        current_user = user_service.get_current_user_profile.await_args.args[0]
        assert current_user.link_id == link_id

    def test_logout_clears_cookies(self, test_client: TestClient, auth_headers) -> None:
        response = test_client.post(f"{API}/users/logout", headers=auth_headers)

        assert response.status_code == 200
        cookies = " ".join(response.headers.get_list("set-cookie"))
        assert f"{settings.auth.access_token_cookie}=" in cookies
        assert f"{settings.auth.refresh_token_cookie}=" in cookies
