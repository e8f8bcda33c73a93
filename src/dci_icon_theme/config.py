import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .encoder import IMAGE_FORMATS
from .models import ScaleEntry
from .settings import UserSettings, load_user_settings


DEFAULT_BASE_SIZE = 256
DEFAULT_SCALES = ("2:100", "3:90")
DEFAULT_IMAGE_FORMAT = "webp"


@dataclass
class AppConfig:
    match: List[str] = field(default_factory=list)
    scales: Tuple[ScaleEntry, ...] = tuple(ScaleEntry.parse(spec) for spec in DEFAULT_SCALES)
    base_size: int = DEFAULT_BASE_SIZE
    image_format: str = DEFAULT_IMAGE_FORMAT
    log_path: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        match: Optional[Sequence[str]] = None,
        scales: Optional[Sequence[str]] = None,
        base_size: Optional[int] = None,
        image_format: Optional[str] = None,
        log_path: Optional[str] = None,
        settings: Optional[UserSettings] = None,
    ) -> "AppConfig":
        if settings is None:
            settings = load_user_settings()

        match_value = (
            list(match or [])
            or _split_list(os.environ.get("DCI_ICON_THEME_MATCH"))
            or list(settings.match or [])
        )
        scale_specs = (
            list(scales or [])
            or _split_list(os.environ.get("DCI_ICON_THEME_SCALES"))
            or list(settings.scales or [])
            or list(DEFAULT_SCALES)
        )
        base_size_value = _resolve_int(
            base_size,
            os.environ.get("DCI_ICON_THEME_BASE_SIZE"),
            settings.base_size,
            DEFAULT_BASE_SIZE,
            "DCI_ICON_THEME_BASE_SIZE",
        )
        if base_size_value <= 0:
            raise ValueError(f"Base size must be positive: {base_size_value}")

        format_value = (
            image_format
            or os.environ.get("DCI_ICON_THEME_FORMAT")
            or settings.image_format
            or DEFAULT_IMAGE_FORMAT
        ).lower()
        if format_value not in IMAGE_FORMATS:
            raise ValueError(
                f"Unsupported image format {format_value!r}, expected one of: "
                + ", ".join(sorted(IMAGE_FORMATS))
            )

        log_path_value = log_path or os.environ.get("DCI_ICON_THEME_LOG_PATH") or settings.log_path

        return cls(
            match=match_value,
            scales=_resolve_scales(scale_specs),
            base_size=base_size_value,
            image_format=format_value,
            log_path=log_path_value,
        )


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _resolve_scales(specs: Sequence[str]) -> Tuple[ScaleEntry, ...]:
    entries: dict[int, ScaleEntry] = {}
    for spec in specs:
        entry = ScaleEntry.parse(spec)
        if entry.factor in entries:
            raise ValueError(f"Duplicate scale factor: {entry.factor}")
        entries[entry.factor] = entry
    return tuple(sorted(entries.values(), key=lambda entry: entry.factor))


def _resolve_int(
    direct_value: Optional[int],
    env_value: Optional[str],
    stored_value: Optional[int],
    default_value: int,
    env_name: str,
) -> int:
    if direct_value is not None:
        return direct_value
    if env_value is not None:
        try:
            return int(env_value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid integer for {env_name}: {env_value}") from exc
    if stored_value is not None:
        return stored_value
    return default_value
