"""Authoritative in-memory store of file records and review blocks.

All block lifecycle transitions go through this class. Callers only ever
receive immutable Block values or deep copies of FileRecords, and re-fetch
by id to observe later transitions.
"""

import logging
import time
from collections.abc import Callable

from edit_review.config import EngineSettings
from edit_review.diff.diff_engine import compute_diff, join_lines, split_lines
from edit_review.exceptions import FileRecordNotFoundError
from edit_review.models import (
    ArmedState,
    BaseType,
    Block,
    BlockStatus,
    FileRecord,
    FileStateSnapshot,
    FileStats,
    ReviewStats,
    RevertInstruction,
    content_hash,
    derive_change_type,
)
from edit_review.utils.block_ids import generate_block_id
from edit_review.utils.path_key import normalize_path

logger = logging.getLogger(__name__)

_ACTIVE_STATUSES = (BlockStatus.PENDING, BlockStatus.ACCEPTED)


def _shifted(block: Block, delta: int) -> Block:
    return block.model_copy(update={
        "start_line": block.start_line + delta,
        "separator_line": block.separator_line + delta,
        "end_line": block.end_line + delta,
    })


class StateRegistry:
    """Owns every FileRecord and Block for one host application.

    Args:
        settings: Engine settings; defaults are used when omitted.
        clock: Returns the current time in epoch seconds. Injected so the
            arming watchdog and timestamps can be driven in tests.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings or EngineSettings()
        self._clock = clock
        self._records: dict[str, FileRecord] = {}
        self._block_index: dict[str, str] = {}  # block id -> record key

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def key_for(self, file_path: str) -> str:
        return normalize_path(file_path, self._settings.workspace_root)

    # ========== File records ==========

    def _ensure_record(self, file_path: str, content: str | None = None) -> FileRecord:
        key = self.key_for(file_path)
        record = self._records.get(key)
        if record is None:
            if content is None:
                raise FileRecordNotFoundError(
                    f"No file record for {file_path} and no initial content provided"
                )
            now = self._now_ms()
            record = FileRecord(
                file_path=key,
                original_content=content,
                current_disk_content=content,
                content_hash=content_hash(content),
                last_sync_time=now,
            )
            self._records[key] = record
            logger.debug("Created file record for %s", key)
        return record

    def get_file_record(self, file_path: str, original_content: str | None = None) -> FileRecord:
        """Return a copy of a file's record, creating it from a snapshot if needed.

        Raises:
            FileRecordNotFoundError: If the file has no record and no
                ``original_content`` was given.
        """
        return self._ensure_record(file_path, original_content).model_copy(deep=True)

    def has_file_record(self, file_path: str) -> bool:
        return self.key_for(file_path) in self._records

    def file_paths(self) -> list[str]:
        return list(self._records)

    def files_with_blocks(self) -> list[str]:
        return [key for key, record in self._records.items() if record.blocks]

    def export_records(self) -> list[FileRecord]:
        return [record.model_copy(deep=True) for record in self._records.values()]

    def delete_file_record(self, file_path: str) -> bool:
        record = self._records.pop(self.key_for(file_path), None)
        if record is None:
            return False
        for block_id in record.blocks:
            self._block_index.pop(block_id, None)
        return True

    def cache_snapshot(self, file_path: str, text: str) -> None:
        """Record the latest materialized text of a file."""
        record = self._ensure_record(file_path, text)
        record.current_disk_content = text
        record.last_sync_time = self._now_ms()

    def current_snapshot(self, file_path: str) -> str | None:
        record = self._records.get(self.key_for(file_path))
        return record.current_disk_content if record else None

    def update_original_content(self, file_path: str, text: str) -> None:
        """Resync the pre-AI-edit snapshot after an external modification."""
        record = self._ensure_record(file_path, text)
        record.original_content = text
        record.content_hash = content_hash(text)
        record.last_sync_time = self._now_ms()

    def is_modified_externally(self, file_path: str, text: str) -> bool:
        record = self._records.get(self.key_for(file_path))
        if record is None:
            return False
        return content_hash(text) != record.content_hash

    # ========== Arming ==========

    def mark_file_for_incoming_edit(
        self,
        file_path: str,
        channel_id: str,
        current_text: str | None = None,
    ) -> None:
        """Arm a file so the next observed change becomes an AI block.

        Args:
            file_path: File about to be edited.
            channel_id: Identifier of the agent turn producing the edit.
            current_text: The file's text right now. Required unless a
                snapshot was already cached for this file.

        Raises:
            FileRecordNotFoundError: If no snapshot is known for the file.
        """
        record = self._ensure_record(file_path, current_text)
        if current_text is not None:
            record.current_disk_content = current_text
            record.last_sync_time = self._now_ms()
        record.armed = ArmedState(channel_id=channel_id, armed_at=self._clock())
        logger.debug("Armed %s for channel %s", record.file_path, channel_id)

    def _active_arming(self, record: FileRecord) -> ArmedState | None:
        armed = record.armed
        if armed is None:
            return None
        if armed.is_expired(self._clock(), self._settings.arming_timeout_seconds):
            logger.warning(
                "Arming for %s (channel %s) expired without a change notification",
                record.file_path,
                armed.channel_id,
            )
            record.armed = None
            return None
        return armed

    def is_armed(self, file_path: str) -> bool:
        record = self._records.get(self.key_for(file_path))
        return record is not None and self._active_arming(record) is not None

    def armed_channel_id(self, file_path: str) -> str | None:
        record = self._records.get(self.key_for(file_path))
        if record is None:
            return None
        armed = self._active_arming(record)
        return armed.channel_id if armed else None

    def unmark_file(self, file_path: str) -> None:
        record = self._records.get(self.key_for(file_path))
        if record is not None:
            record.armed = None

    def notify_content_changed(
        self,
        file_path: str,
        new_text: str,
        tool_name: str | None = None,
    ) -> Block | None:
        """Handle a change notification from the host.

        Only the first notification after arming whose text differs from the
        cached snapshot consumes the arming and is diffed into a block. An
        unchanged-text notification leaves the arming in place. Any other
        notification, including duplicates racing in from a second event
        source, just refreshes the cached snapshot.

        Returns:
            The new Block, or None when the change was not attributed to AI.
        """
        key = self.key_for(file_path)
        record = self._records.get(key)
        if record is None:
            self.cache_snapshot(file_path, new_text)
            return None

        armed = self._active_arming(record)
        if armed is None:
            record.current_disk_content = new_text
            record.last_sync_time = self._now_ms()
            return None
        if new_text == record.current_disk_content:
            return None

        record.armed = None
        return self.record_edit_result(
            file_path,
            record.current_disk_content,
            new_text,
            channel_id=armed.channel_id,
            tool_name=tool_name,
        )

    # ========== Block creation ==========

    def _unique_block_id(self, key: str, start_line: int, timestamp_ms: int) -> str:
        block_id = generate_block_id(key, start_line, timestamp_ms)
        while block_id in self._block_index:
            timestamp_ms += 1
            block_id = generate_block_id(key, start_line, timestamp_ms)
        return block_id

    def _insert_block(self, record: FileRecord, block: Block) -> None:
        record.blocks[block.id] = block
        record.total_blocks_created += 1
        record.resort()
        self._block_index[block.id] = record.file_path

    def add_block(self, block: Block) -> None:
        """Insert an existing block into its file's record.

        Raises:
            FileRecordNotFoundError: If the block's file has no record.
        """
        record = self._ensure_record(block.file_path)
        self._insert_block(record, block)

    def _reconcile_existing(
        self,
        record: FileRecord,
        window_start: int,
        window_end: int,
        delta: int,
        now: int,
    ) -> Block | None:
        """Invalidate, shift or chain existing blocks around a new edit window.

        Touched pending blocks are invalidated. Touched accepted blocks that
        start at or after the window end are shifted by ``delta``.

        Returns the most recent accepted block the new window touches.
        """
        chained: Block | None = None
        for block in record.ordered_blocks():
            if block.status not in _ACTIVE_STATUSES:
                continue
            touches = block.separator_line <= window_end and window_start <= block.end_line
            if touches:
                if block.is_pending:
                    record.blocks[block.id] = block.model_copy(update={
                        "status": BlockStatus.INVALIDATED,
                        "processed_at": now,
                        "last_modified": now,
                    })
                    logger.info("Invalidated stale pending block %s", block.id)
                else:
                    if block.separator_line >= window_end and delta:
                        block = _shifted(block, delta).model_copy(
                            update={"last_modified": now}
                        )
                        record.blocks[block.id] = block
                    if chained is None or block.created_at >= chained.created_at:
                        chained = block
            elif block.separator_line > window_end and delta:
                record.blocks[block.id] = _shifted(block, delta).model_copy(
                    update={"last_modified": now}
                )
        return chained

    def record_edit_result(
        self,
        file_path: str,
        old_text: str,
        new_text: str,
        channel_id: str | None = None,
        tool_name: str | None = None,
    ) -> Block | None:
        """Turn one AI edit into a single merged review block.

        The block spans from the first changed line to the last changed line,
        including any unchanged lines between disjoint hunks. The cached
        snapshot is updated to ``new_text`` whether or not a block results.

        Args:
            file_path: File that was edited (display form).
            old_text: Text before the edit.
            new_text: Text after the edit.
            channel_id: Agent turn that produced the edit.
            tool_name: Tool that wrote the file, for provenance.

        Returns:
            The created Block, or None if the texts have no line changes.
        """
        record = self._ensure_record(file_path, old_text)
        now = self._now_ms()
        record.current_disk_content = new_text
        record.last_sync_time = now

        spans = compute_diff(
            old_text, new_text, max_lines=self._settings.max_diff_lines
        ).spans
        if not spans:
            logger.debug("No line changes for %s; snapshot updated", record.file_path)
            return None

        old_lines = split_lines(old_text)
        new_lines = split_lines(new_text)
        first_start = spans[0].start_line
        last_end = spans[-1].end_line
        total_deleted = sum(len(span.deleted_lines) for span in spans)
        total_added = sum(len(span.added_lines) for span in spans)
        new_end = first_start + (last_end - first_start - total_deleted + total_added)

        base_lines = old_lines[first_start:last_end]
        current_lines = new_lines[first_start:new_end]
        base_content = join_lines(base_lines)
        current_content = join_lines(current_lines)

        chained = self._reconcile_existing(
            record,
            first_start,
            last_end,
            len(current_lines) - len(base_lines),
            now,
        )

        block = Block(
            id=self._unique_block_id(record.file_path, first_start, now),
            file_path=file_path,
            start_line=first_start,
            separator_line=first_start,
            end_line=first_start + len(current_lines),
            base_content=base_content,
            current_content=current_content,
            base_type=BaseType.ACCEPTED if chained else BaseType.ORIGINAL,
            base_block_id=chained.id if chained else None,
            created_at=now,
            last_modified=now,
            change_type=derive_change_type(base_content, current_content),
            lines_added=total_added,
            lines_deleted=total_deleted,
            ai_channel_id=channel_id,
            ai_tool_name=tool_name,
        )
        self._insert_block(record, block)
        record.last_ai_edit_time = now
        logger.info(
            "Created block %s for %s (%s)", block.id, record.file_path, block.summary()
        )

        if self._settings.auto_accept:
            self.accept(block.id)
            return self._records[record.file_path].blocks[block.id]
        return block

    # ========== Lifecycle ==========

    def _locate(self, block_id: str) -> tuple[FileRecord, Block] | None:
        key = self._block_index.get(block_id)
        if key is None:
            return None
        record = self._records.get(key)
        if record is None or block_id not in record.blocks:
            return None
        return record, record.blocks[block_id]

    def _pending_or_warn(self, block_id: str, action: str) -> tuple[FileRecord, Block] | None:
        located = self._locate(block_id)
        if located is None:
            logger.warning("Cannot %s block %s: block not found", action, block_id)
            return None
        _, block = located
        if not block.is_pending:
            logger.warning(
                "Cannot %s block %s: status is %s", action, block_id, block.status.value
            )
            return None
        return located

    def accept(self, block_id: str) -> bool:
        """Mark a pending block accepted. The document already holds its text.

        Returns:
            False if the block is unknown or no longer pending.
        """
        located = self._pending_or_warn(block_id, "accept")
        if located is None:
            return False
        record, block = located
        now = self._now_ms()
        record.blocks[block_id] = block.model_copy(update={
            "status": BlockStatus.ACCEPTED,
            "processed_at": now,
            "last_modified": now,
        })
        record.total_blocks_accepted += 1
        logger.info("Accepted block %s", block_id)
        return True

    def reject(self, block_id: str) -> RevertInstruction | None:
        """Mark a pending block rejected and describe the revert to perform.

        The caller must replace document lines ``[separator_line, end_line)``
        with ``base_content`` and write the file. Later active blocks of the
        same file are shifted to match the reverted document.

        Returns:
            The revert instruction, or None if the block is unknown or no
            longer pending.
        """
        located = self._pending_or_warn(block_id, "reject")
        if located is None:
            return None
        record, block = located
        now = self._now_ms()
        record.blocks[block_id] = block.model_copy(update={
            "status": BlockStatus.REJECTED,
            "processed_at": now,
            "last_modified": now,
        })
        record.total_blocks_rejected += 1

        delta = len(split_lines(block.base_content)) - (block.end_line - block.separator_line)
        if delta:
            for other in record.ordered_blocks():
                if other.id == block_id or other.status not in _ACTIVE_STATUSES:
                    continue
                if other.separator_line >= block.end_line:
                    record.blocks[other.id] = _shifted(other, delta)
            record.resort()

        logger.info("Rejected block %s", block_id)
        return RevertInstruction(
            block_id=block_id,
            file_path=block.file_path,
            base_content=block.base_content,
            separator_line=block.separator_line,
            end_line=block.end_line,
        )

    def invalidate(self, block_id: str) -> bool:
        """Mark a pending block as superseded without reviewing it.

        The superseded edit stays in the document. A later block built over it
        carries that text in its base content, so rejecting the later block
        restores the superseded text rather than the original.
        """
        located = self._pending_or_warn(block_id, "invalidate")
        if located is None:
            return False
        record, block = located
        now = self._now_ms()
        record.blocks[block_id] = block.model_copy(update={
            "status": BlockStatus.INVALIDATED,
            "processed_at": now,
            "last_modified": now,
        })
        return True

    def accept_all(self, file_path: str) -> list[str]:
        """Accept every pending block of a file. Returns the accepted ids."""
        accepted = []
        for block in self.pending_blocks_of(file_path):
            if self.accept(block.id):
                accepted.append(block.id)
        return accepted

    def reject_all(self, file_path: str) -> list[RevertInstruction]:
        """Reject every pending block of a file, bottom-up.

        Returns:
            Revert instructions in descending ``separator_line`` order, to be
            applied sequentially so no revert shifts one not yet applied.
        """
        pending = sorted(
            self.pending_blocks_of(file_path),
            key=lambda block: block.separator_line,
            reverse=True,
        )
        instructions = []
        for block in pending:
            instruction = self.reject(block.id)
            if instruction is not None:
                instructions.append(instruction)
        return instructions

    def accept_all_pending(self) -> int:
        """Accept every pending block in every file. Returns the count."""
        return sum(len(self.accept_all(key)) for key in list(self._records))

    def remove_block(self, block_id: str) -> bool:
        located = self._locate(block_id)
        if located is None:
            return False
        record, _ = located
        del record.blocks[block_id]
        record.resort()
        self._block_index.pop(block_id, None)
        return True

    def clear_blocks(self, file_path: str) -> None:
        record = self._records.get(self.key_for(file_path))
        if record is None:
            return
        for block_id in record.blocks:
            self._block_index.pop(block_id, None)
        record.blocks.clear()
        record.block_order = []

    def clear(self) -> None:
        """Drop every record and block."""
        self._records.clear()
        self._block_index.clear()

    # ========== Queries ==========

    def get_block(self, block_id: str) -> Block | None:
        located = self._locate(block_id)
        return located[1] if located else None

    def _blocks_with(self, file_path: str, status: BlockStatus | None) -> list[Block]:
        record = self._records.get(self.key_for(file_path))
        if record is None:
            return []
        if status is None:
            return record.ordered_blocks()
        return record.blocks_with_status(status)

    def blocks_of(self, file_path: str) -> list[Block]:
        return self._blocks_with(file_path, None)

    def pending_blocks_of(self, file_path: str) -> list[Block]:
        """Pending blocks in navigation order (ascending start line)."""
        return self._blocks_with(file_path, BlockStatus.PENDING)

    def accepted_blocks_of(self, file_path: str) -> list[Block]:
        return self._blocks_with(file_path, BlockStatus.ACCEPTED)

    def rejected_blocks_of(self, file_path: str) -> list[Block]:
        return self._blocks_with(file_path, BlockStatus.REJECTED)

    def all_pending_files(self) -> dict[str, list[Block]]:
        result = {}
        for key, record in self._records.items():
            pending = record.blocks_with_status(BlockStatus.PENDING)
            if pending:
                result[key] = pending
        return result

    def file_stats(self, file_path: str) -> FileStats | None:
        record = self._records.get(self.key_for(file_path))
        if record is None:
            return None
        blocks = list(record.blocks.values())

        def count(status: BlockStatus) -> int:
            return sum(1 for block in blocks if block.status == status)

        return FileStats(
            total_blocks=len(blocks),
            pending_blocks=count(BlockStatus.PENDING),
            accepted_blocks=count(BlockStatus.ACCEPTED),
            rejected_blocks=count(BlockStatus.REJECTED),
            invalidated_blocks=count(BlockStatus.INVALIDATED),
            total_lines_added=sum(block.lines_added for block in blocks),
            total_lines_deleted=sum(block.lines_deleted for block in blocks),
            total_blocks_created=record.total_blocks_created,
            total_blocks_accepted=record.total_blocks_accepted,
            total_blocks_rejected=record.total_blocks_rejected,
        )

    def stats(self) -> ReviewStats:
        totals = {
            "total_files": 0,
            "total_blocks": 0,
            "pending_blocks": 0,
            "accepted_blocks": 0,
            "rejected_blocks": 0,
            "invalidated_blocks": 0,
            "total_lines_added": 0,
            "total_lines_deleted": 0,
        }
        for key in self.files_with_blocks():
            file_stats = self.file_stats(key)
            totals["total_files"] += 1
            for name in totals:
                if name != "total_files":
                    totals[name] += getattr(file_stats, name)
        return ReviewStats(**totals)

    def get_stats(self, file_path: str | None = None) -> FileStats | ReviewStats | None:
        """Per-file stats when a path is given, otherwise global stats."""
        if file_path is None:
            return self.stats()
        return self.file_stats(file_path)

    # ========== Restore ==========

    def load_snapshot(self, snapshot: FileStateSnapshot) -> None:
        """Rebuild one file's record from a persisted snapshot.

        Blocks are re-inserted the same way they were first created, then the
        saved counters and order are laid over the rebuilt record.
        """
        key = self.key_for(snapshot.file_path)
        self.delete_file_record(key)
        record = self._ensure_record(key, snapshot.original_content)
        record.current_disk_content = snapshot.current_disk_content

        for block in snapshot.blocks:
            self._insert_block(record, block)

        record.last_ai_edit_time = snapshot.last_ai_edit_time
        record.total_blocks_created = snapshot.total_blocks_created
        record.total_blocks_accepted = snapshot.total_blocks_accepted
        record.total_blocks_rejected = snapshot.total_blocks_rejected
        record.content_hash = snapshot.content_hash or content_hash(snapshot.original_content)
        record.last_sync_time = snapshot.last_sync_time
        if sorted(snapshot.block_order) == sorted(record.blocks):
            record.block_order = list(snapshot.block_order)

        if snapshot.is_marked_for_ai_edit and snapshot.marked_channel_id:
            armed_at = snapshot.armed_at if snapshot.armed_at is not None else self._clock()
            record.armed = ArmedState(channel_id=snapshot.marked_channel_id, armed_at=armed_at)
