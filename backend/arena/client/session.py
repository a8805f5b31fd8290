"""
Chat session: multi-lane streaming aggregation and auto-save.

One ChatSession drives a conversation in one of three modes:
- single:  one lane, one model
- compare: one lane per selected model (at most MAX_COMPARE_MODELS), all
           streaming concurrently
- smart:   one lane; a SmartRouter picks the model for every turn

Every lane change restarts the auto-save debounce. When it fires and no lane
is streaming, the flattened conversation is created (first save) or updated
(later saves) on the backend under the chat id adopted from the first create.
"""
import asyncio
import datetime as dt
import logging
from typing import Dict, List, Optional

import httpx

from .api import ArenaAPIError, ArenaClient
from .lanes import (
    Lane,
    LaneBusy,
    LaneMessage,
    LaneState,
    add_result,
    apply_chunk,
    begin_turn,
    estimate_tokens,
    fail,
    settle,
)
from .providers import ModelProvider
from .smart import Selection, SmartRouter

logger = logging.getLogger(__name__)

MODES = ("single", "compare", "smart")
GENERATION_TYPES = ("text", "image", "audio")
MAX_COMPARE_MODELS = 5
AUTOSAVE_DELAY = 3.0  # Seconds of quiet before the conversation is saved
TITLE_LENGTH = 50


def title_for(messages: List[LaneMessage], today: Optional[dt.date] = None) -> str:
    """First user message truncated to 50 chars, or a dated default."""
    first = next((m for m in messages if m.role == "user"), None)
    if first is None:
        return f"Chat {(today or dt.date.today()).isoformat()}"
    text = first.text
    return text[:TITLE_LENGTH] + ("..." if len(text) > TITLE_LENGTH else "")


class ChatSession:
    def __init__(
        self,
        api: ArenaClient,
        provider: ModelProvider,
        *,
        model: str = "gpt-5-nano",
        router: Optional[SmartRouter] = None,
        autosave_delay: float = AUTOSAVE_DELAY,
    ):
        self.api = api
        self.provider = provider
        self.router = router or SmartRouter()
        self.autosave_delay = autosave_delay

        self.mode = "single"
        self.generation_type = "text"
        self.active_model = model
        self.selected_models: List[str] = [model]
        self.chat_id: Optional[str] = None
        self.last_selection: Optional[Selection] = None

        # Conversations are kept per mode; only the current mode's lanes are saved
        self._lanes: Dict[str, Dict[str, Lane]] = {m: {} for m in MODES}
        self._save_task: Optional[asyncio.Task] = None  # Debounce timer, cancelled on every change
        self._pending_save: Optional[asyncio.Future] = None  # Save already sent, never cancelled
        self._chat_epoch = 0  # Bumped whenever the held chat id is dropped
        self._save_lock = asyncio.Lock()

    # ---------- lane state ----------
    @property
    def lanes(self) -> Dict[str, Lane]:
        return self._lanes[self.mode]

    @property
    def is_streaming(self) -> bool:
        return any(lane.state is LaneState.STREAMING for lane in self.lanes.values())

    def conversation(self) -> List[LaneMessage]:
        """All messages of the current mode, lanes flattened in selection order."""
        return [m for lane in self.lanes.values() for m in lane.messages]

    def _lane(self, key: str) -> Lane:
        return self.lanes.get(key) or Lane(key=key)

    def _set_lane(self, key: str, lane: Lane) -> None:
        self.lanes[key] = lane
        self._schedule_autosave()

    # ---------- controls ----------
    def set_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValueError(f"unknown mode: {mode}")
        if mode == self.mode:
            return
        self.mode = mode
        self._drop_chat()  # Next save starts a new chat
        if mode == "compare":
            self.generation_type = "text"
        else:
            self.selected_models = [self.active_model]

    def set_generation_type(self, generation_type: str) -> None:
        if generation_type not in GENERATION_TYPES:
            raise ValueError(f"unknown generation type: {generation_type}")
        if self.mode == "compare" and generation_type != "text":
            raise ValueError("image/audio generation is not available in compare mode")
        self.generation_type = generation_type

    def toggle_model(self, model: str) -> None:
        """Single/smart: make `model` active. Compare: add or remove it (a 6th model is ignored)."""
        if self.mode != "compare":
            self.active_model = model
            self.selected_models = [model]
            return
        if model in self.selected_models:
            self.selected_models = [m for m in self.selected_models if m != model]
        elif len(self.selected_models) < MAX_COMPARE_MODELS:
            self.selected_models = self.selected_models + [model]

    def clear(self, model: Optional[str] = None) -> None:
        """Clear the conversation; clearing one compare lane keeps the saved chat."""
        if self.mode == "compare" and model is not None:
            if self.lanes.pop(model, None) is not None:
                self._schedule_autosave()
            return
        self.lanes.clear()
        self._drop_chat()
        self._cancel_autosave()

    # ---------- turns ----------
    async def send(self, prompt: str) -> None:
        """
        Run one user turn across the lanes of the current mode.
        Tokens used by the turn are reported to the backend once, after every lane settles.

        Raises:
            LaneBusy: The previous turn is still streaming
        """
        text = prompt.strip()
        if not text:
            return
        if self.is_streaming:
            raise LaneBusy("a turn is still streaming")

        if self.generation_type != "text":
            used = await self._media_turn(text)
        else:
            if self.mode == "compare":
                if not self.selected_models:
                    raise ValueError("select at least one model to compare")
                targets = [(m, m) for m in self.selected_models]
            elif self.mode == "smart":
                self.last_selection = self.router.select(text)
                targets = [("smart", self.last_selection.model)]
            else:
                targets = [("single", self.active_model)]
            results = await asyncio.gather(*(self._run_lane(key, model, text) for key, model in targets))
            used = sum(results)

        if used > 0:
            await self._report_tokens(used)

    async def _run_lane(self, key: str, model: str, prompt: str) -> int:
        self._set_lane(key, begin_turn(self._lane(key), prompt))
        try:
            async for chunk in self.provider.stream(prompt, model):
                if chunk:
                    self._set_lane(key, apply_chunk(self._lane(key), chunk, model))
        except Exception as e:
            logger.warning("lane %s (%s) failed: %s", key, model, e)
            self._set_lane(key, fail(self._lane(key), model))
            return 0

        lane = settle(self._lane(key), model)
        self._set_lane(key, lane)
        return estimate_tokens(prompt) + estimate_tokens(lane.last.text)

    async def _media_turn(self, prompt: str) -> int:
        key = "smart" if self.mode == "smart" else "single"
        model = self.active_model
        self._set_lane(key, begin_turn(self._lane(key), prompt))
        try:
            url = await self.provider.generate_media(prompt, self.generation_type, model)
        except Exception as e:
            logger.warning("%s generation failed: %s", self.generation_type, e)
            self._set_lane(key, fail(self._lane(key), model))
            return 0
        message = LaneMessage(role="assistant", text=url, model=model, type=self.generation_type, url=url)
        self._set_lane(key, add_result(self._lane(key), message))
        return estimate_tokens(prompt)

    async def _report_tokens(self, tokens: int) -> None:
        try:
            await self.api.update_tokens(tokens)
        except (ArenaAPIError, httpx.HTTPError) as e:
            logger.warning("token update failed (%s tokens): %s", tokens, e)

    # ---------- auto-save ----------
    def _drop_chat(self) -> None:
        self.chat_id = None
        self._chat_epoch += 1

    def _cancel_autosave(self) -> None:
        if self._save_task and not self._save_task.done():
            self._save_task.cancel()
        self._save_task = None

    def _schedule_autosave(self) -> None:
        self._cancel_autosave()
        self._save_task = asyncio.create_task(self._autosave_after_delay())

    async def _autosave_after_delay(self) -> None:
        await asyncio.sleep(self.autosave_delay)
        if self.is_streaming:
            return  # The stream's next change reschedules the save
        # Only the sleep is cancellable; a started save runs to completion
        self._pending_save = asyncio.ensure_future(self.save())
        await asyncio.shield(self._pending_save)

    def chat_payload(self) -> dict:
        messages = self.conversation()
        if self.mode == "compare":
            models = list(self.selected_models)
        elif self.mode == "smart" and self.last_selection:
            models = [self.last_selection.model]
        else:
            models = [self.active_model]
        return {
            "title": title_for(messages),
            "messages": [m.to_payload() for m in messages],
            "mode": self.mode,
            "generationType": self.generation_type,
            "models": models,
        }

    async def save(self) -> Optional[str]:
        """
        Create or update the backend copy of the conversation.
        An empty conversation is never saved. Failures are logged, not retried.
        """
        async with self._save_lock:
            if not self.conversation():
                return self.chat_id
            payload = self.chat_payload()
            epoch = self._chat_epoch
            try:
                if self.chat_id:
                    await self.api.update_chat(self.chat_id, payload)
                else:
                    chat_id = await self.api.save_chat(payload)
                    if epoch == self._chat_epoch:
                        self.chat_id = chat_id
            except (ArenaAPIError, httpx.HTTPError) as e:
                logger.warning("auto-save failed: %s", e)
            return self.chat_id

    async def flush(self) -> None:
        """Wait until neither a debounce timer nor a save request is outstanding."""
        while True:
            pending = [f for f in (self._save_task, self._pending_save) if f is not None and not f.done()]
            if not pending:
                return
            await asyncio.wait(pending)
