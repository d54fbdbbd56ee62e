"""Scan configuration: OCR settings and image preprocessing profiles."""

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

logger = logging.getLogger(__name__)

OCR_MODES = ('normal', 'high-contrast', 'low-contrast')


@dataclass(frozen=True)
class PreprocessProfile:
    """
    Contrast factor and binarization threshold by image brightness.

    Each tuple is (dark, bright, mid). Factors switch at brightness 100/180,
    thresholds at 80/200.
    """
    factors: Tuple[float, float, float]
    thresholds: Tuple[float, float, float]

    def factor_for(self, brightness: float) -> float:
        dark, bright, mid = self.factors
        if brightness < 100:
            return dark
        if brightness > 180:
            return bright
        return mid

    def threshold_for(self, brightness: float) -> float:
        dark, bright, mid = self.thresholds
        if brightness < 80:
            return dark
        if brightness > 200:
            return bright
        return mid


DEFAULT_PROFILES = {
    'normal': PreprocessProfile(factors=(2.0, 1.2, 1.5), thresholds=(100, 140, 128)),
    'high-contrast': PreprocessProfile(factors=(2.5, 1.8, 2.0), thresholds=(90, 150, 120)),
    'low-contrast': PreprocessProfile(factors=(1.2, 0.8, 1.0), thresholds=(110, 130, 135)),
}


@dataclass(frozen=True)
class ScanConfig:
    """Settings for OCR passes. The amount engine itself takes no configuration."""
    language: str = 'eng'
    tesseract_config: str = '--psm 6'
    max_width: int = 1000
    pdf_dpi: int = 200
    accept_confidence: float = 0.75
    modes: Tuple[str, ...] = OCR_MODES
    profiles: Dict[str, PreprocessProfile] = field(default_factory=lambda: dict(DEFAULT_PROFILES))

    def profile_for(self, mode: str) -> PreprocessProfile:
        """Return the preprocessing profile for an OCR mode."""
        if mode not in self.profiles:
            raise ValueError(f"Unknown OCR mode: {mode}")
        return self.profiles[mode]

    @classmethod
    def load(cls, path: Path) -> "ScanConfig":
        """
        Load configuration from a YAML file, keeping defaults for missing keys.

        Args:
            path: Path to a YAML file such as config/scan.yml

        Returns:
            ScanConfig with file values applied
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f) or {}
            config = cls.from_dict(raw)
            logger.info(f"Loaded scan configuration from {path}")
            return config
        except Exception as e:
            logger.error(f"Failed to load scan configuration: {e}")
            raise

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ScanConfig":
        """Build a config from plain data, validating keys and values."""
        if not isinstance(raw, dict):
            raise ValueError("Scan configuration must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        config = cls()
        overrides: Dict[str, Any] = {k: v for k, v in raw.items() if k != 'profiles'}

        if 'modes' in overrides:
            overrides['modes'] = tuple(overrides['modes'])

        profiles = dict(config.profiles)
        for mode, values in (raw.get('profiles') or {}).items():
            profiles[mode] = _parse_profile(mode, values)
        overrides['profiles'] = profiles

        config = replace(config, **overrides)
        config.validate()
        return config

    def validate(self):
        """Raise ValueError if any setting is out of range."""
        if not 0 < self.accept_confidence <= 1:
            raise ValueError("accept_confidence must be in (0, 1]")
        if self.max_width <= 0:
            raise ValueError("max_width must be positive")
        if self.pdf_dpi <= 0:
            raise ValueError("pdf_dpi must be positive")
        if not self.modes:
            raise ValueError("At least one OCR mode is required")
        missing = [mode for mode in self.modes if mode not in self.profiles]
        if missing:
            raise ValueError(f"No preprocessing profile for modes: {', '.join(missing)}")


def _parse_profile(mode: str, values: Dict[str, Any]) -> PreprocessProfile:
    """Parse one profile entry of the form {factors: [..3], thresholds: [..3]}."""
    try:
        factors = tuple(float(v) for v in values['factors'])
        thresholds = tuple(float(v) for v in values['thresholds'])
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid profile for mode {mode}: {e}") from e

    if len(factors) != 3 or len(thresholds) != 3:
        raise ValueError(f"Profile {mode} needs three factors and three thresholds")
    return PreprocessProfile(factors=factors, thresholds=thresholds)
