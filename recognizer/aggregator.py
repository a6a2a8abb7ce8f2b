from __future__ import annotations

import logging

from common.schemas import ResultBatch, TranscriptSnapshot

logger = logging.getLogger(__name__)


class TranscriptAggregator:
    """Folds indexed result batches into a (final, interim) transcript pair.

    Final chunks are appended exactly once, in index order. Interim text is
    replaced wholesale on every batch, since the recognizer redelivers all of
    its still-provisional chunks each time.
    """

    def __init__(self) -> None:
        self._final_parts: list[str] = []
        self._interim_text = ""
        self._last_final_index = -1

    def reset(self) -> None:
        self._final_parts = []
        self._interim_text = ""
        self._last_final_index = -1

    def on_result_batch(self, batch: ResultBatch) -> TranscriptSnapshot:
        scratch: list[str] = []
        for offset, chunk in enumerate(batch.chunks):
            index = batch.start_index + offset
            if index <= self._last_final_index:
                logger.debug("Skipping already finalized chunk %d", index)
                continue
            if chunk.is_final:
                self._final_parts.append(chunk.text)
                self._last_final_index = index
            else:
                scratch.append(chunk.text)
        self._interim_text = "".join(scratch)
        return self.snapshot

    def clear_interim(self) -> None:
        self._interim_text = ""

    @property
    def last_final_index(self) -> int:
        return self._last_final_index

    @property
    def final_text(self) -> str:
        return "".join(self._final_parts)

    @property
    def interim_text(self) -> str:
        return self._interim_text

    @property
    def snapshot(self) -> TranscriptSnapshot:
        return TranscriptSnapshot(final_text=self.final_text, interim_text=self._interim_text)
