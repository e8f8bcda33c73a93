from dataclasses import dataclass
from pathlib import Path


LIGHT_TONE = "normal.light"
DARK_TONE = "normal.dark"
LIGHT_SUFFIX = ".light"
DARK_SUFFIX = ".dark"
DARK_DIRECTORY = "dark"


@dataclass(frozen=True)
class ScaleEntry:
    factor: int
    quality: int

    def pixel_size(self, base_size: int) -> int:
        return self.factor * base_size

    @classmethod
    def parse(cls, spec: str) -> "ScaleEntry":
        """Parse ``FACTOR:QUALITY`` (quality defaults to 100)."""
        factor_text, _, quality_text = spec.strip().partition(":")
        try:
            factor = int(factor_text)
            quality = int(quality_text) if quality_text.strip() else 100
        except ValueError as exc:
            raise ValueError(f"Invalid scale entry {spec!r}, expected FACTOR:QUALITY") from exc
        if factor <= 0:
            raise ValueError(f"Scale factor must be positive: {spec!r}")
        if not 0 <= quality <= 100:
            raise ValueError(f"Scale quality must be within 0-100: {spec!r}")
        return cls(factor=factor, quality=quality)


@dataclass
class SourceCandidate:
    path: Path
    in_dark_directory: bool
    is_symlink: bool

    @property
    def base_name(self) -> str:
        return self.path.stem

    @property
    def dark_path(self) -> Path:
        return self.path.parent / DARK_DIRECTORY / self.path.name


@dataclass
class BuildResult:
    name: str
    output_path: Path
    dark_mirrored: bool = False
