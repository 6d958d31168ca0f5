from __future__ import annotations
from typing import Any
from uuid import UUID
import httpx
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential_jitter, retry_if_exception_type
from hunt_api.schemas.hunt import HuntOut
from hunt_api.schemas.progress import TeamProgress, StageView
from hunt_api.schemas.submission import SubmissionPublic


class HuntClientError(Exception):
    """Non-2xx answer from the API, carrying the server's detail and code."""

    def __init__(self, status_code: int, detail: str, code: str | None = None):
        self.status_code = status_code
        self.detail = detail
        self.code = code
        super().__init__(f"{status_code} {code or 'error'}: {detail}")


class HuntClient:
    """
    Thin authenticated wrapper over the HTTP API. Transport failures are
    retried with jittered exponential backoff; HTTP errors are not retried.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds

    async def __aenter__(self) -> "HuntClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(self, method: str, path: str, **kwargs) -> Any:
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=self.backoff_seconds, max=30),
            retry=retry_if_exception_type(httpx.TransportError),
        ):
            with attempt:
                resp = await self._http.request(method, path, **kwargs)
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            detail = body.get("detail") if isinstance(body, dict) else None
            raise HuntClientError(
                resp.status_code,
                detail if isinstance(detail, str) else resp.text,
                body.get("code") if isinstance(body, dict) else None,
            )
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def get_progress(self, hunt_id: UUID, team_id: UUID) -> TeamProgress:
        data = await self.request("GET", f"/hunts/{hunt_id}/progress", params={"teamId": str(team_id)})
        return TeamProgress.model_validate(data)

    async def list_stages(self, hunt_id: UUID, team_id: UUID) -> list[StageView]:
        data = await self.request("GET", f"/hunts/{hunt_id}/stages", params={"teamId": str(team_id)})
        return [StageView.model_validate(x) for x in data]

    async def assigned_hunts(self, team_id: UUID) -> list[HuntOut]:
        data = await self.request("GET", "/hunts/assigned", params={"teamId": str(team_id)})
        return [HuntOut.model_validate(x) for x in data]

    async def submit(self, clue_id: UUID, team_id: UUID, image_url: str, description: str) -> SubmissionPublic:
        data = await self.request(
            "POST", f"/clues/{clue_id}/submissions",
            json={"teamId": str(team_id), "imageUrl": image_url, "description": description},
        )
        return SubmissionPublic.model_validate(data)

    async def leader_approve(self, submission_id: UUID, notes: str | None = None) -> SubmissionPublic:
        data = await self.request("POST", f"/submissions/{submission_id}/leader-approve", json={"notes": notes})
        return SubmissionPublic.model_validate(data)

    async def leader_reject(self, submission_id: UUID, notes: str) -> SubmissionPublic:
        data = await self.request("POST", f"/submissions/{submission_id}/leader-reject", json={"notes": notes})
        return SubmissionPublic.model_validate(data)

    async def forward(
        self, team_id: UUID, clue_id: UUID, submission_ids: list[UUID], notes: str | None = None
    ) -> list[SubmissionPublic]:
        data = await self.request(
            "POST", f"/teams/{team_id}/clues/{clue_id}/forward-to-admin",
            json={"submissionIds": [str(i) for i in submission_ids], "notes": notes},
        )
        return [SubmissionPublic.model_validate(x) for x in data]

    async def admin_approve(self, submission_id: UUID, feedback: str | None = None) -> SubmissionPublic:
        data = await self.request("POST", f"/submissions/{submission_id}/admin-approve", json={"feedback": feedback})
        return SubmissionPublic.model_validate(data)

    async def admin_reject(self, submission_id: UUID, feedback: str) -> SubmissionPublic:
        data = await self.request("POST", f"/submissions/{submission_id}/admin-reject", json={"feedback": feedback})
        return SubmissionPublic.model_validate(data)

    async def declare_winner(self, hunt_id: UUID, team_id: UUID, override: bool = False) -> HuntOut:
        data = await self.request(
            "POST", f"/hunts/{hunt_id}/winner", json={"teamId": str(team_id), "override": override}
        )
        return HuntOut.model_validate(data)
