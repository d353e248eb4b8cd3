"""Entry points the host editor and agent orchestration call into.

The service is the composition root for one registry, one settings object
and one blob store. It turns the lower layers' exceptions into the
graceful degradations hosts expect: nothing here raises for malformed
input, stale block ids or unusable stored state.
"""

import logging
import time
from collections.abc import Callable

from edit_review.config import EngineSettings
from edit_review.diff.diff_engine import compute_diff, split_lines
from edit_review.exceptions import (
    BlobStoreError,
    SchemaVersionError,
    SnapshotDecodeError,
    SnapshotTooLargeError,
)
from edit_review.markers import codec as marker_codec
from edit_review.markers import validator as marker_validator
from edit_review.models import (
    Block,
    ChangeSpan,
    DiffResult,
    FileStats,
    InsertResult,
    MarkerConfig,
    ParseResult,
    ReviewStats,
    RevertInstruction,
    SnapshotInfo,
    ValidationResult,
)
from edit_review.persistence.blob_store import BlobStore, FileBlobStore, InMemoryBlobStore
from edit_review.persistence.codec import (
    decode_state,
    describe_snapshot,
    encode_state,
    restore_registry,
)
from edit_review.state.registry import StateRegistry

logger = logging.getLogger(__name__)


def block_to_span(block: Block) -> ChangeSpan:
    """Express a block as a span over the current document."""
    return ChangeSpan(
        start_line=block.separator_line,
        end_line=block.end_line,
        deleted_lines=split_lines(block.base_content),
        added_lines=split_lines(block.current_content),
        change_type=block.change_type,
    )


class ReviewService:
    """Facade over the registry, marker codec and persistence layer.

    Args:
        registry: Registry to operate on. A new one is built when omitted.
        settings: Engine settings; taken from the registry when omitted.
        store: Blob store for ``save``/``load``. Defaults to in-memory.
        clock: Epoch-seconds clock passed to a newly built registry.
    """

    def __init__(
        self,
        registry: StateRegistry | None = None,
        settings: EngineSettings | None = None,
        store: BlobStore | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if registry is None:
            registry = StateRegistry(settings=settings, clock=clock)
        self.registry = registry
        self.settings = settings or registry.settings
        self.store = store if store is not None else InMemoryBlobStore()

    # ========== Edit intake ==========

    def mark_file_for_incoming_edit(
        self,
        file_path: str,
        channel_id: str,
        current_text: str | None = None,
    ) -> None:
        self.registry.mark_file_for_incoming_edit(file_path, channel_id, current_text)

    def is_armed(self, file_path: str) -> bool:
        return self.registry.is_armed(file_path)

    def unmark_file(self, file_path: str) -> None:
        self.registry.unmark_file(file_path)

    def cache_snapshot(self, file_path: str, text: str) -> None:
        self.registry.cache_snapshot(file_path, text)

    def notify_content_changed(
        self,
        file_path: str,
        new_text: str,
        tool_name: str | None = None,
    ) -> Block | None:
        return self.registry.notify_content_changed(file_path, new_text, tool_name)

    def record_edit_result(
        self,
        file_path: str,
        old_text: str,
        new_text: str,
        channel_id: str | None = None,
        tool_name: str | None = None,
    ) -> Block | None:
        return self.registry.record_edit_result(
            file_path, old_text, new_text, channel_id=channel_id, tool_name=tool_name
        )

    # ========== Queries ==========

    def list_pending_blocks(self, file_path: str) -> list[Block]:
        return self.registry.pending_blocks_of(file_path)

    def list_all_pending_files(self) -> dict[str, list[Block]]:
        return self.registry.all_pending_files()

    def get_block(self, block_id: str) -> Block | None:
        return self.registry.get_block(block_id)

    def get_stats(self, file_path: str | None = None) -> FileStats | ReviewStats | None:
        return self.registry.get_stats(file_path)

    # ========== Review actions ==========

    def accept(self, block_id: str) -> bool:
        return self.registry.accept(block_id)

    def reject(self, block_id: str) -> RevertInstruction | None:
        return self.registry.reject(block_id)

    def accept_all(self, file_path: str) -> list[str]:
        return self.registry.accept_all(file_path)

    def reject_all(self, file_path: str) -> list[RevertInstruction]:
        return self.registry.reject_all(file_path)

    def accept_all_pending(self) -> int:
        return self.registry.accept_all_pending()

    # ========== Diff ==========

    def diff(self, old_text: str, new_text: str) -> DiffResult:
        """Diff two snapshots, splitting spans at ``settings.max_block_size``."""
        return compute_diff(
            old_text,
            new_text,
            max_block_size=self.settings.max_block_size,
            max_lines=self.settings.max_diff_lines,
        )

    # ========== Marker interchange ==========

    def encode_as_markers(
        self,
        file_path: str,
        blocks: list[Block] | None = None,
        config: MarkerConfig | None = None,
    ) -> InsertResult:
        """Render blocks into the file's cached text as marker regions.

        Args:
            file_path: File whose cached snapshot is the base text.
            blocks: Blocks to encode. Defaults to the file's pending blocks.
            config: Delimiters to write.
        """
        text = self.registry.current_snapshot(file_path) or ""
        if blocks is None:
            blocks = self.registry.pending_blocks_of(file_path)
        return marker_codec.insert_markers(
            text,
            [(block_to_span(block), block.id) for block in blocks],
            config,
        )

    def decode_markers(self, text: str, extract_clean_content: bool = False) -> ParseResult:
        return marker_codec.parse_markers(text, extract_clean_content)

    def validate_markers(self, text: str) -> ValidationResult:
        return marker_validator.validate(text)

    def extract_clean_content(self, text: str) -> str:
        return marker_codec.extract_clean_content(text)

    def marker_report(self, text: str) -> str:
        return marker_validator.generate_report(text)

    # ========== Persistence ==========

    def snapshot_state(self) -> str | None:
        """Serialize the registry, or None if the snapshot is too large."""
        try:
            return encode_state(self.registry, self.settings.max_state_bytes)
        except SnapshotTooLargeError as exc:
            logger.warning("Skipping state snapshot: %s", exc)
            return None

    def _discard_stored_state(self) -> None:
        try:
            self.store.delete(self.settings.storage_key)
        except BlobStoreError as exc:
            logger.error("Failed to delete stored state: %s", exc)

    def restore_state(self, blob: str) -> bool:
        """Replace the registry with a stored snapshot.

        An incompatible or unreadable blob is treated as no prior state: the
        registry and the stored copy are cleared.

        Returns:
            True if the snapshot was restored.
        """
        try:
            envelope = decode_state(blob)
        except SchemaVersionError as exc:
            logger.warning("Discarding stored state: %s", exc)
            self.registry.clear()
            self._discard_stored_state()
            return False
        except SnapshotDecodeError as exc:
            logger.warning("Discarding unreadable stored state: %s", exc)
            self.registry.clear()
            self._discard_stored_state()
            return False

        restore_registry(self.registry, envelope)
        logger.info(
            "Restored review state for %d files (saved at %d)",
            len(envelope.file_states),
            envelope.timestamp,
        )
        return True

    def save(self) -> bool:
        """Write a snapshot to the blob store. Never writes a partial one."""
        blob = self.snapshot_state()
        if blob is None:
            return False
        try:
            self.store.put(self.settings.storage_key, blob)
        except BlobStoreError as exc:
            logger.error("Failed to save review state: %s", exc)
            return False
        logger.debug("Saved review state (%d bytes)", len(blob))
        return True

    def load(self) -> bool:
        """Restore from the blob store. Returns False if nothing was restored."""
        try:
            blob = self.store.get(self.settings.storage_key)
        except BlobStoreError as exc:
            logger.error("Failed to load review state: %s", exc)
            return False
        if blob is None:
            logger.info("No saved review state")
            return False
        return self.restore_state(blob)

    def snapshot_info(self) -> SnapshotInfo:
        try:
            return describe_snapshot(self.store.get(self.settings.storage_key))
        except BlobStoreError as exc:
            logger.error("Failed to read stored state: %s", exc)
            return SnapshotInfo(exists=False)

    def clear(self) -> None:
        self.registry.clear()


def create_review_service(
    settings: EngineSettings | None = None,
    clock: Callable[[], float] = time.time,
) -> ReviewService:
    """Build a service backed by a file blob store under ``settings.state_dir``."""
    settings = settings or EngineSettings()
    return ReviewService(
        registry=StateRegistry(settings=settings, clock=clock),
        settings=settings,
        store=FileBlobStore(settings.state_dir),
    )
