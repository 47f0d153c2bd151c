from typing import Any, Dict, List, Optional

import httpx


class ApiError(Exception):
    def __init__(self, status_code: int, detail: str, kind: Optional[str] = None):
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.kind = kind


class TrackerApiClient:
    """Thin async wrapper over the HTTP API; one AsyncClient per instance."""

    def __init__(self, base_url: str, token: Optional[str] = None, *,
                 timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(base_url=base_url, headers=headers,
                                       timeout=timeout, transport=transport)

    async def __aenter__(self) -> "TrackerApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict] = None) -> Any:
        response = await self._http.request(method, path, json=json)
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {"detail": response.text}
            detail = body.get("detail") if isinstance(body, dict) else body
            raise ApiError(response.status_code, str(detail),
                           body.get("kind") if isinstance(body, dict) else None)
        return response.json()

    # ATS
    async def start_scan(self, job_application_id: Optional[str] = None,
                         analysis_id: Optional[str] = None) -> str:
        payload: Dict[str, str] = {}
        if job_application_id:
            payload["jobApplicationId"] = job_application_id
        if analysis_id:
            payload["analysisId"] = analysis_id
        data = await self._request("POST", "/ats/scan", payload)
        return data["analysisId"]

    async def get_score(self, analysis_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/ats/scores/{analysis_id}")

    # generation
    async def generate(self, job_id: str, language: str = "en", theme: str = "modern") -> Dict[str, Any]:
        return await self._request("POST", f"/generator/{job_id}", {"language": language, "theme": theme})

    async def get_generation(self, job_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/generator/{job_id}")

    async def submit_inputs(self, job_id: str, user_input_data: Dict[str, str]) -> Dict[str, Any]:
        return await self._request("POST", f"/generator/{job_id}/submit", {"userInputData": user_input_data})

    async def finalize(self, job_id: str, user_input_data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        payload = {"userInputData": user_input_data} if user_input_data is not None else {}
        return await self._request("POST", f"/generator/{job_id}/finalize", payload)

    async def save_draft(self, job_id: str, draft: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/generator/{job_id}/draft", draft)

    # chat
    async def ask(self, job_id: str, question: str) -> str:
        data = await self._request("POST", f"/chat/{job_id}", {"question": question})
        return data["answer"]

    async def chat_history(self, job_id: str) -> List[Dict[str, Any]]:
        data = await self._request("GET", f"/chat/{job_id}/history")
        return data["history"]
