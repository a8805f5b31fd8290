"""
Async HTTP client for the arena backend.

Wraps the REST surface used by chat sessions and battle screens. Every call
returns the decoded JSON body; non-2xx responses raise ArenaAPIError.
"""
from typing import Any, Optional
from urllib.parse import quote

import httpx


class ArenaAPIError(Exception):
    """Backend answered with an error status."""

    def __init__(self, status_code: int, detail: Any):
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class ArenaClient:
    """
    Backend API client.

    Parameters:
    - base_url: Server root, e.g. "http://localhost:3001"
    - token: Bearer token; set automatically by signup()/login()
    - transport: Optional httpx transport (tests pass an ASGITransport)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "ArenaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        resp = await self._http.request(method, path, json=json, headers=headers)
        if resp.is_error:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            raise ArenaAPIError(resp.status_code, detail)
        return resp.json()

    # ---------- account ----------
    async def signup(self, email: str, username: str, password: str, confirm_password: Optional[str] = None) -> dict:
        data = await self._request("POST", "/api/auth/signup", {
            "email": email,
            "username": username,
            "password": password,
            "confirmPassword": confirm_password if confirm_password is not None else password,
        })
        self.token = data["token"]
        return data["user"]

    async def login(self, email: str, password: str) -> dict:
        data = await self._request("POST", "/api/auth/login", {"email": email, "password": password})
        self.token = data["token"]
        return data["user"]

    async def profile(self) -> dict:
        return await self._request("GET", "/api/auth/profile")

    async def update_tokens(self, tokens: int) -> dict:
        return await self._request("POST", "/api/auth/update-tokens", {"tokens": tokens})

    # ---------- chats ----------
    async def save_chat(self, payload: dict) -> str:
        data = await self._request("POST", "/api/auth/save-chat", payload)
        return data["chatId"]

    async def update_chat(self, chat_id: str, payload: dict) -> None:
        await self._request("PUT", f"/api/auth/chats/{chat_id}", payload)

    async def get_chat(self, chat_id: str) -> dict:
        data = await self._request("GET", f"/api/auth/chats/{chat_id}")
        return data["chat"]

    async def list_chats(self) -> list[dict]:
        data = await self._request("GET", "/api/auth/chats")
        return data["chats"]

    async def search_chats(self, query: str) -> list[dict]:
        data = await self._request("GET", f"/api/auth/chats/search/{quote(query, safe='')}")
        return data["chats"]

    async def delete_chat(self, chat_id: str) -> None:
        await self._request("DELETE", f"/api/auth/chats/{chat_id}")

    # ---------- community battles ----------
    async def create_battle(self, question: str, model1: str, model2: str, *,
                            model1_response: str = "", model2_response: str = "", duration: float = 5) -> dict:
        data = await self._request("POST", "/api/community-battles", {
            "question": question,
            "model1": model1,
            "model2": model2,
            "model1Response": model1_response,
            "model2Response": model2_response,
            "duration": duration,
        })
        return data["battle"]

    async def list_battles(self) -> list[dict]:
        return await self._request("GET", "/api/community-battles")

    async def vote(self, battle_id: str, choice: str) -> dict:
        data = await self._request("POST", f"/api/community-battles/{battle_id}/vote", {"model": choice})
        return data["battle"]

    async def cleanup_expired(self) -> int:
        data = await self._request("POST", "/api/community-battles/cleanup-expired")
        return data["cleanedCount"]

    # ---------- generation passthrough ----------
    async def generate_text(self, prompt: str, model: str) -> str:
        data = await self._request("POST", "/api/generation/text", {"prompt": prompt, "model": model})
        return data["text"]

    async def generate_image(self, prompt: str, model: str = "flux") -> str:
        data = await self._request("POST", "/api/generation/image", {"prompt": prompt, "model": model})
        return data["imageUrl"]

    async def generate_audio(self, text: str, voice: str = "alloy") -> str:
        data = await self._request("POST", "/api/generation/audio", {"text": text, "voice": voice})
        return data["audioUrl"]
