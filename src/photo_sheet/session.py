"""
Module: session

Purpose:
    In-memory editing session: the ordered list of photo items, the
    active layout settings, and every user operation on them. Raster
    work runs on a TransformQueue so callers get Futures back at once;
    layout, preview and export read immutable snapshots.

Key Classes:
    - PhotoSession: Single-document session orchestrator
    - IngestResult: Items added and images rejected by add_images()

Design:
    - Items are immutable; every edit swaps in a new PhotoItem under
      the session lock.
    - Rotate/flip requests are recorded as outstanding deltas. The
      item's `transform` is Pending(composition of outstanding deltas)
      until the last queued job bakes, then Baked(). Each job re-derives
      the processed raster from the untouched source, so repeated
      edits never accumulate resampling error.
    - A job whose item was deleted meanwhile discards its result.

Dependencies:
    - transform: Raster derivation and the per-item queue
    - layout: Packing and arrangement
    - output: Preview, export and print

Used By:
    - Front ends (GUI, scripts)
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple, Union

from PIL import Image

from photo_sheet.core.errors import (
    BackgroundRemovalError,
    DecodeError,
    InvalidDimensionError,
    ItemNotFoundError,
)
from photo_sheet.core.models import (
    BAKED,
    DEFAULT_BACKGROUND,
    DEFAULT_PRESET,
    Alignment,
    CropRegion,
    CustomSize,
    Distribution,
    LayoutSettings,
    Orientation,
    PageGeometry,
    Pending,
    PhotoItem,
    SizePreset,
    TargetSize,
    TransformState,
    Unit,
    resize_target,
    size_for_preset,
)
from photo_sheet.layout import (
    PackResult,
    Placement,
    align,
    distribute,
    estimated_page_count,
    pack_items,
    photos_per_page,
    resolve_placements,
)
from photo_sheet.output import (
    ExportConfig,
    ExportResult,
    PageRenderReport,
    export_document,
    rasterize_page,
    render_document_bytes,
    render_preview,
)
from photo_sheet.preferences import REMOVEBG_API_KEY, PreferenceStore
from photo_sheet.services import BackgroundRemover
from photo_sheet.transform import (
    TransformQueue,
    apply_background,
    clamp_crop_region,
    decode_raster,
    derive_processed,
    encode_raster,
    is_valid_color,
)

logger = logging.getLogger(__name__)

SizeChoice = Union[SizePreset, CustomSize, TargetSize]


@dataclass(frozen=True)
class IngestResult:
    """
    Outcome of add_images().

    Attributes:
        added: Items created, in input order
        failed: (input index, error) for each rejected image
    """

    added: Tuple[PhotoItem, ...]
    failed: Tuple[Tuple[int, DecodeError], ...] = field(default_factory=tuple)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _crop_changes(
    item: PhotoItem,
    orientation: Orientation,
    region: CropRegion,
    target: TargetSize,
) -> dict:
    """Clamped crop region and target size for an item shown at `orientation`."""
    ratio = target.aspect_ratio
    if orientation.rotation in (90, 270):
        ratio = 1 / ratio
    return {
        "crop_region": clamp_crop_region(region, item.source_size, ratio),
        "target_size": target,
    }


class PhotoSession:
    """
    One editing session.

    Usage:
        with PhotoSession() as session:
            item = session.add_image(data)
            session.rotate([item.id], 90).pop().result()
            result = session.export(ExportConfig(output_dir=Path("out")))

    Attributes:
        geometry: Page geometry for packing, preview and export
        size_preset: Size given to newly ingested images
    """

    def __init__(
        self,
        *,
        geometry: Optional[PageGeometry] = None,
        settings: Optional[LayoutSettings] = None,
        queue: Optional[TransformQueue] = None,
        preferences: Optional[PreferenceStore] = None,
        remover: Optional[BackgroundRemover] = None,
        size_preset: SizeChoice = DEFAULT_PRESET,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.geometry = geometry or PageGeometry()
        self.size_preset = size_preset
        self._settings = settings or LayoutSettings()
        self._queue = queue or TransformQueue()
        self._preferences = preferences
        self._remover = remover
        self._new_id = id_factory
        self._items: List[PhotoItem] = []
        self._outstanding: Dict[str, Deque[Orientation]] = {}
        self._lock = threading.RLock()

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def items(self) -> Tuple[PhotoItem, ...]:
        """Snapshot of the item list."""
        with self._lock:
            return tuple(self._items)

    @property
    def settings(self) -> LayoutSettings:
        return self._settings

    @property
    def queue(self) -> TransformQueue:
        return self._queue

    def get(self, item_id: str) -> PhotoItem:
        """
        Current item with `item_id`.

        Raises:
            ItemNotFoundError: If no such item exists.
        """
        with self._lock:
            item = self._find(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return any(item.id == item_id for item in self._items)

    # ─────────────────────────────────────────────────────────────────────────
    # Ingestion and list edits
    # ─────────────────────────────────────────────────────────────────────────

    def add_image(self, data: bytes, *, size: Optional[SizeChoice] = None) -> PhotoItem:
        """
        Ingest one encoded image.

        The item starts with the full image as crop region, a white
        background and the target size from `size` (or the session's
        size preset).

        Raises:
            DecodeError: If `data` is not a readable image.
        """
        image = decode_raster(data)
        width, height = image.size
        item = PhotoItem(
            id=self._new_id(),
            source_image=data,
            processed_image=encode_raster(apply_background(image, DEFAULT_BACKGROUND)),
            source_size=(width, height),
            target_size=self._resolve_size(size or self.size_preset, (width, height)),
            crop_region=CropRegion.full(width, height),
        )
        with self._lock:
            self._items.append(item)
        logger.debug(f"Added {item.id}: {width}x{height}px -> {item.target_size.as_tuple()}mm")
        return item

    def add_images(self, images: Sequence[bytes], *, size: Optional[SizeChoice] = None) -> IngestResult:
        """Ingest several images; undecodable ones are reported, not fatal."""
        added: List[PhotoItem] = []
        failed: List[Tuple[int, DecodeError]] = []
        for index, data in enumerate(images):
            try:
                added.append(self.add_image(data, size=size))
            except DecodeError as e:
                logger.warning(f"Skipped image {index}: {e}")
                failed.append((index, e))
        logger.info(f"Ingested {len(added)} of {len(images)} images")
        return IngestResult(tuple(added), tuple(failed))

    def delete(self, item_ids: Sequence[str]) -> int:
        """
        Remove items. In-flight transforms for them are discarded.

        Returns:
            Number of items removed.
        """
        doomed = set(item_ids)
        with self._lock:
            before = len(self._items)
            self._items = [item for item in self._items if item.id not in doomed]
            for item_id in doomed:
                self._outstanding.pop(item_id, None)
            removed = before - len(self._items)
        logger.debug(f"Deleted {removed} items")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._items = []
            self._outstanding.clear()

    def duplicate(self, item_ids: Sequence[str], count: int = 1) -> List[PhotoItem]:
        """
        Append `count` copies of each item.

        Copy i (0-based) of an item gets duplicate_count =
        original.duplicate_count + i + 1 and a fresh id. Rotations and
        flips still queued for the original are queued for each copy too.
        """
        if count < 1:
            raise ValueError(f"count must be >= 1: {count}")
        copies: List[PhotoItem] = []
        inherited: List[Tuple[str, Orientation]] = []
        with self._lock:
            for item_id in item_ids:
                original = self._find(item_id)
                if original is None:
                    continue
                for i in range(count):
                    copy = original.with_updates(
                        id=self._new_id(),
                        duplicate_count=original.duplicate_count + i + 1,
                        transform=BAKED,
                    )
                    copies.append(copy)
                    if isinstance(original.transform, Pending):
                        inherited.append((copy.id, original.transform.orientation))
            self._items.extend(copies)
        for copy_id, pending in inherited:
            self._request_orientation(copy_id, pending)
        logger.debug(f"Duplicated {len(item_ids)} items x{count}")
        return copies

    def move(self, item_id: str, new_index: int) -> None:
        """Move an item to `new_index` in the list (changes packing order)."""
        with self._lock:
            item = self._require(item_id)
            self._items.remove(item)
            index = max(0, min(new_index, len(self._items)))
            self._items.insert(index, item)

    # ─────────────────────────────────────────────────────────────────────────
    # Sizes
    # ─────────────────────────────────────────────────────────────────────────

    def apply_size(self, item_ids: Sequence[str], size: SizeChoice) -> None:
        """Set the target size of each item; ORIGINAL uses each item's own pixels."""
        with self._lock:
            for item_id in item_ids:
                item = self._find(item_id)
                if item is None:
                    continue
                target = self._resolve_size(size, item.source_size)
                self._replace(item.with_updates(target_size=target))

    def resize(
        self,
        item_id: str,
        *,
        width: Optional[float] = None,
        height: Optional[float] = None,
        unit: Unit = Unit.MM,
        lock_aspect: bool = True,
    ) -> PhotoItem:
        """Edit one dimension of an item's target size."""
        with self._lock:
            item = self._require(item_id)
            target = resize_target(
                item.target_size, width=width, height=height, unit=unit, lock_aspect=lock_aspect
            )
            updated = item.with_updates(target_size=target)
            self._replace(updated)
        return updated

    # ─────────────────────────────────────────────────────────────────────────
    # Raster transforms (asynchronous)
    # ─────────────────────────────────────────────────────────────────────────

    def rotate(self, item_ids: Sequence[str], degrees: float) -> List[Future]:
        """Rotate each item clockwise by `degrees`."""
        return [self._request_orientation(item_id, Orientation(degrees)) for item_id in item_ids]

    def flip(self, item_ids: Sequence[str], *, horizontal: bool = False, vertical: bool = False) -> List[Future]:
        delta = Orientation(0, horizontal, vertical)
        return [self._request_orientation(item_id, delta) for item_id in item_ids]

    def set_background(self, item_ids: Sequence[str], color: str) -> List[Future]:
        """Re-composite each item over `color`."""
        if not is_valid_color(color):
            raise ValueError(f"Unrecognised colour: {color!r}")
        futures = []
        for item_id in item_ids:
            self._require(item_id)
            futures.append(
                self._queue.submit(item_id, self._bake, item_id, None, {"background_color": color})
            )
        return futures

    def crop(
        self,
        item_id: str,
        region: CropRegion,
        *,
        size: Optional[SizeChoice] = None,
    ) -> Future:
        """
        Crop an item to `region` (source pixels).

        The region is narrowed to the aspect ratio of the new target size
        (`size`, or the current one) and clamped to the image when the job
        runs. A quarter turn baked in by then, including one queued
        before this call, swaps the ratio so the printed result matches
        the target.
        """
        item = self.get(item_id)
        target = self._resolve_size(size, item.source_size) if size is not None else item.target_size
        return self._queue.submit(item_id, self._bake, item_id, None, {}, (region, target))

    def reset_crop(self, item_id: str) -> Future:
        item = self.get(item_id)
        changes = {"crop_region": CropRegion.full(*item.source_size)}
        return self._queue.submit(item_id, self._bake, item_id, None, changes)

    def remove_background(
        self,
        item_id: str,
        *,
        api_key: Optional[str] = None,
        background_color: Optional[str] = None,
    ) -> Future:
        """
        Cut out the subject with the external remover and re-composite.

        The credential comes from `api_key` or the preference store and
        is saved back to the store after a successful call.

        Raises:
            BackgroundRemovalError: If no remover or credential is available.
        """
        if self._remover is None:
            raise BackgroundRemovalError("No background removal service configured")
        key = api_key or (self._preferences.get(REMOVEBG_API_KEY) if self._preferences else None)
        if not key:
            raise BackgroundRemovalError("No API key for background removal")
        if background_color is not None and not is_valid_color(background_color):
            raise ValueError(f"Unrecognised colour: {background_color!r}")
        self._require(item_id)
        return self._queue.submit(
            item_id, self._remove_background_job, item_id, key, background_color
        )

    def wait(self, timeout: Optional[float] = None) -> int:
        """Block until queued transforms finish; returns successful count."""
        return self._queue.wait_all(timeout)

    def close(self) -> None:
        self._queue.shutdown()

    def __enter__(self) -> "PhotoSession":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # ─────────────────────────────────────────────────────────────────────────
    # Layout
    # ─────────────────────────────────────────────────────────────────────────

    def update_settings(self, **changes) -> LayoutSettings:
        """Replace the layout settings with `changes` applied."""
        if "outline_color" in changes and not is_valid_color(changes["outline_color"]):
            raise ValueError(f"Unrecognised colour: {changes['outline_color']!r}")
        with self._lock:
            self._settings = self._settings.with_updates(**changes)
        return self._settings

    def pack(self) -> PackResult:
        items, settings = self._snapshot()
        return pack_items(items, settings, self.geometry)

    def placements(self) -> List[Optional[Placement]]:
        """Final placement per item (overrides applied), in list order."""
        items, settings = self._snapshot()
        return resolve_placements(items, pack_items(items, settings, self.geometry))

    @property
    def page_count(self) -> int:
        return self.pack().page_count

    def estimate_pages(self, size: Optional[SizeChoice] = None) -> int:
        """
        Advisory page count assuming every item had one size.

        Uses the session's size preset when `size` is omitted.
        """
        with self._lock:
            count = len(self._items)
            source = self._items[0].source_size if self._items else (1, 1)
        target = self._resolve_size(size or self.size_preset, source)
        per_page = photos_per_page(
            target.width_mm, target.height_mm, self._settings.gap_mm, self.geometry
        )
        return estimated_page_count(count, per_page)

    def align_selected(self, item_ids: Sequence[str], alignment: Optional[Alignment] = None) -> int:
        """
        Align selected items; records the choice in the settings.

        Returns:
            Number of items given a position override.
        """
        alignment = alignment or self._settings.alignment
        with self._lock:
            items = list(self._items)
            placements = resolve_placements(items, pack_items(items, self._settings, self.geometry))
            overrides = align(items, placements, item_ids, alignment)
            self._apply_overrides(overrides)
            self._settings = self._settings.with_updates(alignment=alignment)
        return len(overrides)

    def distribute_selected(
        self,
        item_ids: Sequence[str],
        distribution: Optional[Distribution] = None,
    ) -> int:
        distribution = distribution or self._settings.distribution
        with self._lock:
            items = list(self._items)
            placements = resolve_placements(items, pack_items(items, self._settings, self.geometry))
            overrides = distribute(items, placements, item_ids, distribution)
            self._apply_overrides(overrides)
            self._settings = self._settings.with_updates(distribution=distribution)
        return len(overrides)

    def clear_positions(self, item_ids: Optional[Sequence[str]] = None) -> None:
        """Drop manual position overrides (all items when `item_ids` is None)."""
        with self._lock:
            wanted = None if item_ids is None else set(item_ids)
            self._items = [
                item.with_updates(position=None)
                if item.position is not None and (wanted is None or item.id in wanted)
                else item
                for item in self._items
            ]

    # ─────────────────────────────────────────────────────────────────────────
    # Output
    # ─────────────────────────────────────────────────────────────────────────

    def render_preview(self, page_index: int = 0, scale: float = 0.3) -> Tuple[Image.Image, PageRenderReport]:
        """Paint one page at `scale` of export resolution."""
        items, settings = self._snapshot()
        placements = resolve_placements(items, pack_items(items, settings, self.geometry))
        return render_preview(
            items,
            placements,
            settings,
            page_index=page_index,
            scale=scale,
            geometry=self.geometry,
        )

    def export(self, config: Optional[ExportConfig] = None) -> ExportResult:
        """
        Export the current document to a PDF file.

        Items and settings are snapshotted first, so edits made while
        the export runs do not affect it.
        """
        items, settings = self._snapshot()
        config = config or ExportConfig(geometry=self.geometry)
        return export_document(items, settings, config)

    def print_document(self) -> Tuple[bytes, ExportResult]:
        """The document as in-memory PDF bytes, for sending to a printer."""
        items, settings = self._snapshot()
        return render_document_bytes(items, settings, self.geometry)

    def print_preview(self, page_index: int = 0, dpi: int = 72) -> Image.Image:
        """Rasterized page of the exact document print_document() produces."""
        pdf_bytes, _ = self.print_document()
        return rasterize_page(pdf_bytes, page_index, dpi)

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _snapshot(self) -> Tuple[Tuple[PhotoItem, ...], LayoutSettings]:
        with self._lock:
            return tuple(self._items), self._settings

    def _find(self, item_id: str) -> Optional[PhotoItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def _require(self, item_id: str) -> PhotoItem:
        item = self._find(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def _replace(self, updated: PhotoItem) -> None:
        for index, item in enumerate(self._items):
            if item.id == updated.id:
                self._items[index] = updated
                return
        raise ItemNotFoundError(updated.id)

    def _apply_overrides(self, overrides) -> None:
        for item_id, position in overrides.items():
            item = self._find(item_id)
            if item is not None:
                self._replace(item.with_updates(position=position))

    def _resolve_size(self, size: SizeChoice, source_size: Tuple[int, int]) -> TargetSize:
        if isinstance(size, TargetSize):
            return size
        if isinstance(size, CustomSize):
            return size.to_target()
        if isinstance(size, SizePreset):
            return size_for_preset(size, source_size)
        raise InvalidDimensionError(f"Unsupported size: {size!r}")

    def _pending_state(self, item_id: str) -> TransformState:
        """Pending(composition of outstanding deltas), or Baked()."""
        deltas = self._outstanding.get(item_id)
        if not deltas:
            self._outstanding.pop(item_id, None)
            return BAKED
        combined = Orientation()
        for delta in deltas:
            combined = combined.then(delta)
        return Pending.from_orientation(combined)

    def _request_orientation(self, item_id: str, delta: Orientation) -> Future:
        with self._lock:
            item = self._require(item_id)
            self._outstanding.setdefault(item_id, deque()).append(delta)
            self._replace(item.with_updates(transform=self._pending_state(item_id)))
        return self._queue.submit(item_id, self._bake, item_id, delta, {})

    def _settle_delta(self, item_id: str, delta: Optional[Orientation]) -> None:
        """Drop a finished orientation request from the outstanding list."""
        if delta is None:
            return
        deltas = self._outstanding.get(item_id)
        if deltas:
            deltas.popleft()

    def _bake(
        self,
        item_id: str,
        delta: Optional[Orientation],
        changes: dict,
        crop_request: Optional[Tuple[CropRegion, TargetSize]] = None,
    ) -> Optional[PhotoItem]:
        """
        Queue job: re-derive the processed raster with `delta` and `changes`.

        `crop_request` is a (region, target size) pair clamped against the
        orientation this job sees. The new raster, orientation, field
        changes and transform state are swapped in together. On failure
        nothing but the pending state changes and the error propagates
        through the Future.

        Returns:
            The updated item, or None if the item was deleted meanwhile.
        """
        with self._lock:
            item = self._find(item_id)
            if item is None:
                logger.warning(f"Discarding transform for deleted item {item_id}")
                return None
            orientation = item.orientation.then(delta) if delta is not None else item.orientation
            if crop_request is not None:
                changes = {**changes, **_crop_changes(item, orientation, *crop_request)}
            candidate = item.with_updates(orientation=orientation, **changes)

        try:
            processed = derive_processed(candidate)
        except Exception as e:
            logger.warning(f"Transform for {item_id} failed: {e}")
            with self._lock:
                self._settle_delta(item_id, delta)
                current = self._find(item_id)
                if current is not None:
                    self._replace(current.with_updates(transform=self._pending_state(item_id)))
            raise

        with self._lock:
            current = self._find(item_id)
            if current is None:
                logger.warning(f"Discarding transform for deleted item {item_id}")
                return None
            self._settle_delta(item_id, delta)
            updated = current.with_updates(
                processed_image=processed,
                orientation=orientation,
                transform=self._pending_state(item_id),
                **changes,
            )
            self._replace(updated)
        logger.debug(f"Baked {item_id}: {updated.transform!r}")
        return updated

    def _remove_background_job(
        self,
        item_id: str,
        api_key: str,
        background_color: Optional[str],
    ) -> Optional[PhotoItem]:
        with self._lock:
            item = self._find(item_id)
        if item is None:
            logger.warning(f"Discarding background removal for deleted item {item_id}")
            return None

        try:
            cutout = self._remover.remove(item.source_image, api_key)
        except BackgroundRemovalError:
            raise
        except (OSError, ValueError, RuntimeError) as e:
            raise BackgroundRemovalError(f"Background removal failed for {item_id}: {e}") from e
        decode_raster(cutout)

        if self._preferences is not None:
            self._preferences.set(REMOVEBG_API_KEY, api_key)

        changes = {"cutout_image": cutout}
        if background_color is not None:
            changes["background_color"] = background_color
        logger.info(f"Background removed for {item_id}")
        return self._bake(item_id, None, changes)
