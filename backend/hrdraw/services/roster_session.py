"""Per-session roster state: raw text, parsed candidates, draw and groups."""
from __future__ import annotations

import logging
import random
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import anyio

from hrdraw.core.config import settings
from hrdraw.core.errors import ActionInProgressError, ExternalServiceError
from hrdraw.entities import Candidate, DuplicateReport, Group
from hrdraw.i18n import label
from hrdraw.services.confirm_gate import ConfirmGate
from hrdraw.services.csv_export import export_groups_csv
from hrdraw.services.demo_samples import mock_roster_text
from hrdraw.services.draw_engine import DrawEngine
from hrdraw.services.duplicates import analyze_duplicates, deduplicate
from hrdraw.services.group_partitioner import apply_group_names, partition
from hrdraw.services.name_assistant import NameAssistant
from hrdraw.services.name_parser import join_names, parse_names, split_names

logger = logging.getLogger(__name__)


@dataclass
class CleanResult:
    names: list[str]
    fallback: bool = False
    message: str | None = None
    discarded: bool = False


class RosterSession:
    """Holds one user's roster. Every parse event replaces the candidate list."""

    def __init__(
        self,
        session_id: str,
        assistant: NameAssistant,
        rng: Optional[random.Random] = None,
        confirm_timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        timeout = settings.confirm_timeout_seconds if confirm_timeout is None else confirm_timeout
        self.session_id = session_id
        self.assistant = assistant
        self.rng = rng or random.Random()
        self.raw_text = ""
        self.candidates: list[Candidate] = []
        self.groups: list[Group] = []
        self.draw = DrawEngine(rng=self.rng, confirm_timeout=timeout, clock=clock)
        self.clear_gate = ConfirmGate(timeout=timeout, clock=clock)
        self._report: DuplicateReport | None = None
        self._busy: set[str] = set()

    @property
    def report(self) -> DuplicateReport:
        if self._report is None:
            self._report = analyze_duplicates(self.candidates)
        return self._report

    @property
    def busy_actions(self) -> list[str]:
        """AI actions currently awaiting a response; clients disable their triggers."""
        return sorted(self._busy)

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        if action in self._busy:
            raise ActionInProgressError(action)
        self._busy.add(action)
        try:
            yield
        finally:
            self._busy.discard(action)

    def _replace(self, text: str, candidates: list[Candidate]) -> None:
        self.raw_text = text
        self.candidates = candidates
        self._report = None
        self.draw.set_pool(candidates)

    def set_text(self, text: str) -> list[Candidate]:
        self._replace(text, parse_names(text))
        return self.candidates

    def load_file(self, data: bytes) -> list[Candidate]:
        text = data.decode("utf-8-sig", errors="replace")
        return self.set_text(text)

    def load_mock(self) -> list[Candidate]:
        return self.set_text(mock_roster_text())

    def remove_duplicates(self) -> int:
        unique = deduplicate(self.candidates)
        removed = len(self.candidates) - len(unique)
        self._replace(join_names(c.name for c in unique), unique)
        if removed:
            logger.info(f"[{self.session_id}] Removed {removed} duplicate entries")
        return removed

    def clear(self) -> bool:
        """Two-step clear of the list, the draw history and the groups."""
        if not self.clear_gate.press():
            return False
        self._replace("", [])
        self.groups = []
        self.draw.clear()
        logger.info(f"[{self.session_id}] Roster cleared")
        return True

    async def ai_clean(self) -> CleanResult:
        raw_text = self.raw_text
        if not raw_text.strip():
            return CleanResult(names=[c.name for c in self.candidates])

        with self._guard("ai-clean"):
            try:
                names = await anyio.to_thread.run_sync(self.assistant.clean_names, raw_text)
                result = CleanResult(names=names)
            except ExternalServiceError as exc:
                logger.warning(f"[{self.session_id}] AI cleanup failed, using plain split: {exc}")
                result = CleanResult(
                    names=split_names(raw_text),
                    fallback=True,
                    message=label("ai_clean_failed"),
                )

        if self.raw_text != raw_text:
            logger.info(f"[{self.session_id}] Roster edited during cleanup, result discarded")
            return CleanResult(names=[c.name for c in self.candidates], discarded=True)
        self.set_text(join_names(result.names))
        return result

    async def add_transcribed(self, audio: bytes, mime_type: str) -> list[str]:
        with self._guard("transcribe"):
            try:
                names = await anyio.to_thread.run_sync(
                    self.assistant.transcribe_audio, audio, mime_type
                )
            except ExternalServiceError as exc:
                logger.error(f"[{self.session_id}] Audio transcription failed: {exc}", exc_info=True)
                raise

        current = self.raw_text.split("\n") if self.raw_text else []
        merged = [line for line in [*current, *names] if line.strip()]
        self.set_text(join_names(merged))
        return names

    def generate_groups(self, group_size: int) -> list[Group]:
        self.groups = partition(self.candidates, group_size, rng=self.rng)
        return self.groups

    async def apply_ai_group_names(self) -> tuple[list[Group], bool]:
        """Returns the groups and whether AI names were applied."""
        groups = self.groups
        if not groups:
            return groups, False

        with self._guard("group-names"):
            try:
                names = await anyio.to_thread.run_sync(
                    self.assistant.name_groups, [g.member_names() for g in groups]
                )
            except ExternalServiceError as exc:
                logger.warning(f"[{self.session_id}] Group naming failed, keeping defaults: {exc}")
                return self.groups, False

        if self.groups is not groups:
            logger.info(f"[{self.session_id}] Groups regenerated during naming, names discarded")
            return self.groups, False
        self.groups = apply_group_names(groups, names)
        return self.groups, True

    def export_csv(self) -> bytes:
        return export_groups_csv(self.groups)
