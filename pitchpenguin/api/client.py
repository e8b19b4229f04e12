import logging
from typing import Any
import aiohttp
from pitchpenguin.api.urls import api_url
from pitchpenguin.config import Settings
from pitchpenguin.game.models import ActionResult, GameSnapshot, PitchDraft, PitchList, RoomInfo

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Raised when a read against the game server fails: a non-2xx status or an
    `{ok: false}` body.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class RoomNotFoundError(ApiError):
    pass


def _normalize_code(code: str) -> str:
    return code.strip().upper()


class RoomApiClient:
    """
    Thin async wrapper over the game server's REST endpoints.

    Reads (`get_*`) raise on failure so the poller can count the tick as
    failed. Actions return the server's `ActionResult` untouched, including
    `{ok: false, message}`, so callers can surface the message.
    """

    def __init__(self, settings: Settings | None = None, session: aiohttp.ClientSession | None = None):
        self.settings = settings or Settings.from_env()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "RoomApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    def url(self, path: str) -> str:
        return api_url(self.settings.api_base_url, path)

    async def _get_json(self, path: str) -> dict[str, Any]:
        session = self._get_session()
        async with session.get(self.url(path)) as resp:
            if resp.status != 200:
                text = await resp.text()
                raise ApiError(f"GET {path} failed: {resp.status} - {text}", status=resp.status)
            data = await resp.json()
        if not isinstance(data, dict):
            raise ApiError(f"GET {path} returned a non-object body", status=200)
        if data.get("ok") is False:
            message = data.get("message") or "Request failed"
            if message.lower() == "room not found":
                raise RoomNotFoundError(message, status=200)
            raise ApiError(message, status=200)
        return data

    async def _post(self, path: str, payload: dict[str, Any]) -> ActionResult:
        session = self._get_session()
        async with session.post(self.url(path), json=payload) as resp:
            try:
                data = await resp.json(content_type=None)
            except ValueError:
                data = None
            if not isinstance(data, dict):
                text = await resp.text()
                logger.warning(f"POST {path} returned {resp.status}: {text}")
                return ActionResult(ok=False, message=f"Server returned {resp.status}")
        result = ActionResult.model_validate(data)
        if not result.ok:
            logger.warning(f"POST {path} rejected: {result.message}")
        return result

    # Reads

    async def get_room(self, code: str) -> RoomInfo:
        return RoomInfo.model_validate(await self._get_json(f"/api/room/{code}"))

    async def get_game(self, code: str) -> GameSnapshot:
        return GameSnapshot.from_payload(await self._get_json(f"/api/room/{code}/game"))

    async def get_pitches(self, code: str) -> PitchList:
        return PitchList.model_validate(await self._get_json(f"/api/room/{code}/pitches"))

    # Room membership

    async def create_room(self, host_name: str) -> ActionResult:
        return await self._post("/api/rooms", {"hostName": host_name.strip()})

    async def join_room(self, code: str, player_name: str) -> ActionResult:
        return await self._post(
            "/api/rooms/join",
            {"code": _normalize_code(code), "playerName": player_name.strip()},
        )

    async def leave_room(self, code: str, player_name: str) -> ActionResult:
        return await self._post(
            "/api/rooms/leave",
            {"code": _normalize_code(code), "playerName": player_name.strip()},
        )

    # Lobby

    async def select_mascot(self, code: str, player_name: str, mascot: str) -> ActionResult:
        return await self._post(f"/api/room/{code}/mascot", {"playerName": player_name, "mascot": mascot})

    async def toggle_voice(self, code: str, enabled: bool) -> ActionResult:
        return await self._post(f"/api/room/{code}/toggle-voice", {"enabled": enabled})

    async def advance(self, code: str, player_name: str) -> ActionResult:
        return await self._post(f"/api/room/{code}/advance", {"playerName": player_name})

    # Round

    async def select_ask(self, code: str, ask: str) -> ActionResult:
        return await self._post(f"/api/room/{code}/select-ask", {"ask": ask})

    async def submit_pitch(self, code: str, draft: PitchDraft) -> ActionResult:
        return await self._post(f"/api/room/{code}/pitch", draft.model_dump(by_alias=True))

    async def generate_ai_pitch(self, code: str, player_name: str) -> ActionResult:
        return await self._post(f"/api/room/{code}/ai-pitch", {"playerName": player_name})

    async def mark_pitch_viewed(self, code: str, pitch_id: str, viewer: str) -> ActionResult:
        return await self._post(f"/api/room/{code}/pitch-viewed", {"pitchId": pitch_id, "viewer": viewer})

    async def challenge(self, code: str, accuser: str, pitch_id: str) -> ActionResult:
        return await self._post(
            f"/api/room/{code}/challenge",
            {"accuser": accuser, "pitchId": pitch_id, "usedAI": True},
        )

    async def judge(self, code: str, pitch_id: str, judge: str) -> ActionResult:
        return await self._post(f"/api/room/{code}/judge", {"pitchId": pitch_id, "judge": judge})

    async def advance_round(self, code: str, player_name: str) -> ActionResult:
        return await self._post(f"/api/room/{code}/advance-round", {"playerName": player_name})

    # Final round

    async def player_ready(self, code: str, player_name: str) -> ActionResult:
        return await self._post(f"/api/room/{code}/player-ready", {"playerName": player_name})

    async def submit_ranking(self, code: str, player_name: str, ranked_pitch_ids: list[str]) -> ActionResult:
        return await self._post(
            f"/api/room/{code}/tiebreaker-ranking",
            {"playerName": player_name, "rankedPitchIds": ranked_pitch_ids},
        )

    # Narration

    async def fetch_tts_audio(self, text: str, voice_profile: str | None = None) -> bytes | None:
        payload: dict[str, Any] = {"text": text}
        if voice_profile:
            payload["voiceProfile"] = voice_profile
        session = self._get_session()
        async with session.post(self.url("/api/tts"), json=payload) as resp:
            if resp.status != 200:
                logger.warning(f"TTS request failed: {resp.status}")
                return None
            if not resp.headers.get("content-type", "").startswith("audio/"):
                return None
            audio = await resp.read()
        return audio or None
